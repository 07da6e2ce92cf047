# Nombre de archivo: __init__.py
# Ubicación de archivo: core/__init__.py
# Descripción: Inicializa el paquete de utilidades centrales

"""Dominio compartido: parsers de planillas, servicios de avisos y cuadrillas, feed de cambios."""
