# Stow Kiosk - Warehouse Station Status Board
"""Stow Kiosk: real-time warehouse station status board.

Core Components:
- State: SQLAlchemy-backed station, safety message and bin stores
- Realtime: WebSocket broadcast hub for kiosk displays
- API Layer: Flask REST API with Pydantic validation
- Slack Integration: interactive station panel, slash commands and reminders
"""
