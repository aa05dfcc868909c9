"""
Conduit Articles Backend — Services Layer
==========================================

Service inventory:
    - article_check:  Stateless precondition checks (fact → Ok | Err)
    - query_params:   Pure normalization of listing query strings
    - ArticleService: Persistence lookups, check assertions, DTO building

Routes call exactly one ArticleService method per request; services never
see HTTP objects.
"""
