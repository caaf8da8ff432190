"""Versioned wire contracts for the BotRacers registry API."""
