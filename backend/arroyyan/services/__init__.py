# Services package init
"""
Arroyyan Backend — Services Layer
===================================

What:  Business logic between routes (HTTP) and models (persistence).
How:   Each service is a stateless singleton; every method takes the request's
       AsyncSession as its first argument and never commits. The session
       dependency commits once the route returns, so a service call that
       raises leaves nothing behind.

Service Inventory:
    - AuthService:       register, login/logout, refresh, sessions
    - ProductService:    catalog CRUD, stock lookup
    - SupplyService:     suppliers, supply orders (warehouse_stock += qty)
    - TransferService:   warehouse → display transfers, display stats
    - SaleService:       checkout (display_stock -= qty), sales reports
    - DashboardService:  period summaries, trend, top products
    - CustomerService:   per-user customer records
    - numbering:         INV/TRF/SUP-YYYYMMDD-NNN document numbers
"""
