"""
Lunch Squad: group lunch coordination service.

Members register a name, say whether they are in for lunch today, pick
cuisine and dietary preferences, favorite restaurants, and get one shared
restaurant recommendation per day.
"""
