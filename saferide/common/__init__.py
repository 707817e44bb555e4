# saferide/common/__init__.py
"""
Общие утилиты: логирование, константы, ошибки.
"""
