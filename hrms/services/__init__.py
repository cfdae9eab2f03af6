"""서비스 패키지 — 비즈니스 로직 계층.

Service package — Business logic layer.
Services apply business rules, call repositories and flush; routers commit.
"""
