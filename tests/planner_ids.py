"""Ids of the reference rows created by the planning_data fixture."""

CONSULTING_AREA = 1
ENGINEERING_AREA = 2
EMPTY_AREA = 3

BILLABLE_CATEGORY = 1
VACATION_CATEGORY = 4

ACME = 1
GLOBEX = 2
INITECH = 3
FALLBACK_CLIENT = 10
CONSULTING_VACATION = 20

ANA = 1
BRUNO = 2
CARLA = 3
