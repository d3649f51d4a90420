"""Запросы к Docker: список контейнеров, сетевые счётчики, имена."""
