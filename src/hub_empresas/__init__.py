"""HUB Empresas incubation program service.

Questionnaire auto-save and weighted scoring, automatic action plans for
under-performing blocks, and event-driven badge awarding with notifications
for the companies moving through the program stages.
"""

__version__ = "0.1.0"
