"""ctxload: load files, directory trees, URLs, and notes into a token-bounded context."""
