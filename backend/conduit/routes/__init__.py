"""
Conduit Articles Backend — API Routes Package
==============================================

Route inventory:
    - articles.py:  the eight /articles routes, registered from ARTICLE_ROUTES
                    by build_article_router()
    - guards.py:    viewer resolution and the auth guard
    - health.py:    GET /health

Routes stay thin: extract parameters, call one service method, return
its result.
"""
