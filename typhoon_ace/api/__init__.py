"""Typhoon ACE HTTP API"""
