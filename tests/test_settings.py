from __future__ import annotations

from settings import Settings


def test_cors_origins_are_split_and_trimmed():
    s = Settings(CORS_ORIGINS="http://localhost:5173, https://app.example.com ,")
    assert s.cors_origins == ["http://localhost:5173", "https://app.example.com"]


def test_unknown_settings_are_ignored():
    s = Settings(VITE_API_URL="http://localhost:3000")
    assert not hasattr(s, "VITE_API_URL")
    assert s.DATABASE_NAME
