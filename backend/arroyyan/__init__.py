"""
Arroyyan Petshop Backend
==========================

Inventory and point-of-sale API for the Arroyyan petshop.

Layered Architecture:
    ┌──────────────┐
    │   Routes     │  ← HTTP handlers (thin: parse, delegate, wrap envelope)
    ├──────────────┤
    │  Services    │  ← Business rules (stock movement, totals, auth)
    ├──────────────┤
    │   Models     │  ← SQLAlchemy ORM mappings
    ├──────────────┤
    │  Database    │  ← Async engine + per-request session (one transaction)
    └──────────────┘

Stock flow:
    supply order (pasokan)   → warehouse_stock += qty
    stock transfer (etalase) → warehouse_stock -= qty, display_stock += qty
    sale (penjualan)         → display_stock -= qty
"""

__version__ = "1.0.0"
