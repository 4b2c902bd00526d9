"""Graph shell client: OData request construction, paging and response shaping."""
