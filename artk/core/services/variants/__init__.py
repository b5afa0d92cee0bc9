"""
Variant selection: the catalog, the environment resolver, and vendoring.
"""
