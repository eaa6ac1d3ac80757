"""
Request/response schemas, one module per API area.
"""
