"""Server module for jsoncomposer.

Exposes the composition pipeline over HTTP:

    from jsoncomposer.server import create_app

    app = create_app()   # POST /composer → GEXF
"""

from jsoncomposer.server.composer_server import create_app

__all__ = ['create_app']
