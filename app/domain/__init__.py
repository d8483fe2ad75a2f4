"""Domain-driven modules: one package per business area"""
