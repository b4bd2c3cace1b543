"""
FieldSync Backend: API Routes Package
======================================

Route Inventory:
    - inspectors.py: POST /login, POST /register
    - reports.py:    POST /sync-report, GET /get-reports
    - health.py:     GET /, GET /health

Routes stay thin: decode the request, call a service, shape the response.
"""
