from enum import Enum


class BookingStep(str, Enum):
    appointment = "appointment"
    patient_details = "patient-details"
    login = "login"
    payment = "payment"
