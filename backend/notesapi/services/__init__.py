"""
Notes API - Services Layer
===========================

Service Inventory:
    - NoteStore: storage accessor translating note operations into SQL
"""
