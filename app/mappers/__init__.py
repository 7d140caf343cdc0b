"""
app/mappers package marker.

Import from the submodules directly; `mapping_validator` depends on
`app.mappers.transforms`, so this package must stay import-free.
"""
