"""Мониторинг простаивающих контейнеров и остановка их Nomad-задач."""

__version__ = "1.0.0"
