# Routes package init
"""
Nexus Forum Backend — API Routes Package
=========================================

Route Inventory:
    - health.py:      GET  /health, GET /api/health
    - auth.py:        POST /api/register, POST /api/login
    - categories.py:  GET  /api/categories
    - topics.py:      GET  /api/topics, POST /api/topics,
                      GET  /api/topics/{id}, GET /api/topics/{id}/posts
    - posts.py:       POST /api/posts, POST /api/posts/{id}/like
    - stats.py:       GET  /api/stats

Routes stay thin: read the request, call the store or AuthService, return
the model. Errors propagate as exceptions to the handlers in main.py.
"""
