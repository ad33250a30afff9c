"""
Identity Registry HTTP backend (FastAPI)
"""
