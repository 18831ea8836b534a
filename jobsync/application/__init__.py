"""Application layer.

The container wires one EventChannel, JobRegistry and JobDetailSession per session
and hands the same instances to every consumer.

Rule of thumb:
caller -> registry/detail session -> ports -> adapters
"""
