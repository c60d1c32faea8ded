"""
error_insight/integrations - Host adapters

- asgi: Starlette / FastAPI middleware
- console: sys.excepthook for scripts and CLIs
"""
