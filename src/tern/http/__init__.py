"""Request, response, and header primitives used by the context."""
