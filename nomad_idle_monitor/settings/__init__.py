"""Подсистема настроек: группы, валидаторы и загрузка из окружения."""
