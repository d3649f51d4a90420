"""Клиент Nomad HTTP API для остановки задач."""
