# saferide/services/__init__.py
"""
Внешние интерфейсы: HTTP API и realtime-канал.
"""
