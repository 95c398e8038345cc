"""
Catalog package.

- models: Row models (also the cache payload format) and wire models.
- visibility: Pure visibility decisions for modpacks and builds.
- assembler: Turns rows into endpoint responses.
"""
