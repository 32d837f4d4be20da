# Routes package init
"""
Arroyyan Backend — API Routes Package
=======================================

What:  HTTP route handlers, one module per resource.

Route Inventory:
    - health.py:     GET /, /health, /health/live, /health/ready
    - auth.py:       /api/auth       register, login, logout, me, refresh
    - produk.py:     /api/produk     product catalog and per-product stock
    - pasokan.py:    /api/pasokan    suppliers and supply orders (warehouse in)
    - etalase.py:    /api/etalase    warehouse → display transfers, display reports
    - penjualan.py:  /api/penjualan  checkout (display out) and sales reports
    - dashboard.py:  /api/dashboard  revenue, trend, best sellers, low stock
    - customers.py:  /api/customers  customer records owned by the current user

Design Principle:
    Routes are THIN. They resolve dependencies (session, current user, role),
    call one service method and wrap the result in the ApiResponse envelope.
    Business rules and error decisions live in services.
"""
