"""Data connectors for the SKU metrics service"""
