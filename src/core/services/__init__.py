"""Servicios de orquestación (despacho de lotes)."""
