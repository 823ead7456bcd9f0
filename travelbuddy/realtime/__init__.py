"""Realtime fan-out (Socket.IO rooms).

Two kinds of rooms exist: one per user (notifications) and one per activity
(chat and presence). Handlers publish through the RoomBroker interface so the
transport can be swapped without touching domain code.
"""
