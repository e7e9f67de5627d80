"""Hotel back-office backend"""
