"""Pagestage - Layout/Slot composition and nested-route URLs for page builders."""
