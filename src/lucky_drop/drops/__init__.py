"""
Drops Module

Gift-drop documents, their persistence and the recipient reveal flow.
"""
