"""Ядро детектора простоя: парсинг метрик, трекер активности, цикл опроса."""
