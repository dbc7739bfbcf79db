"""Core capabilities: catalog, git, build, working copies and the checker."""
