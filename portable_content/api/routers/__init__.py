"""HTTP routers for the schema and content endpoint groups."""
