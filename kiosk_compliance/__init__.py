"""
Customer compliance-state core for cash-in/cash-out kiosks
"""
