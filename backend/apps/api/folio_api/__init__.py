"""
Folio API application.
"""
