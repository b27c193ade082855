"""TaskQueue - project and task workflow core."""

# No imports at package level; import modules directly where needed

__all__ = [
    "errors",
    "models",
    "schemas",
    "service",
    "storage",
    "workflow",
]

__version__ = "1.0.0"
