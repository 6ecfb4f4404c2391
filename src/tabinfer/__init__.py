"""
tabinfer: schema inference and field mapping for tabular imports.
"""
