"""
Daily recommendation engine.

Responsibilities:
- Collect today's attendees and their favorite restaurants.
- Drop restaurants that miss any attendee's cuisine or dietary preferences.
- Score the rest by shared favorites and rating, and lock in the winner.
- Reshuffle, random pick and rating operations on the day's choice.
"""
