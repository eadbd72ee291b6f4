"""HTTP transport for mms: FastAPI app over the ops layer.

Usage::

    from mms.api.app import create_app

    app = create_app()
"""
