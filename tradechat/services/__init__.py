"""Market data and informational services"""
