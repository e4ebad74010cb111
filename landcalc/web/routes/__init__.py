"""Web route modules for LandCalc.

Routes:
- health: Health check
- estimates: Build, fetch and finalize estimates
- pricing: Material price resolution
- delivery: Delivery quotes
- reports: Budget vs. actual
- expenses: Expense ledger
- change_orders: Change orders
- dashboard: Project financial summary
"""
