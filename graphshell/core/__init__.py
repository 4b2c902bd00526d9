"""Core Request Engine Module

Module Structure:
    - odata/            : OData request construction, execution, paging
    - graph_service.py  : Verb-level operations (get, search, next page, invoke, ...)

Usage Pattern:
    from graphshell.core.graph_service import GraphService
    from graphshell.core.odata import AuthContext, QueryOptions
"""
