"""Adaptadores de I/O: HTTP, indicadores y proveedores de facturación."""
