"""Body templates for generated notifications, in Greek and English."""

from typing import Any, Dict

from .notification_types import NotificationType

_T = NotificationType

MESSAGES: Dict[str, Dict[str, str]] = {
    "el": {
        _T.PICKUP_24H: "Προετοιμάστε το όχημα {plate} για παράδοση στον/στην {customer} αύριο στις {time}",
        _T.PICKUP_3H: "Παράδοση σε 3 ώρες: {plate} στον/στην {customer}",
        _T.PICKUP_30MIN: "Ο/Η {customer} θα έρθει σε 30 λεπτά για το {plate}",
        _T.RETURN_7D: "Επιστροφή του {plate} από {customer} σε 7 ημέρες",
        _T.RETURN_3D: "Επιστροφή του {plate} σε 3 ημέρες - προετοιμάστε για έλεγχο",
        _T.RETURN_1D: "Επιστροφή του {plate} αύριο στις {time}",
        _T.RETURN_3H: "Επιστροφή σε 3 ώρες: {plate}",
        _T.RETURN_OVERDUE: "Το όχημα {plate} δεν επιστράφηκε! Επικοινωνήστε με {customer}",
        "return_overdue_hours": "Το όχημα {plate} δεν επιστράφηκε! Καθυστέρηση: {hours} ώρες",
        _T.KTEO_60D: "Το ΚΤΕΟ για {plate} λήγει σε 2 μήνες ({date})",
        _T.KTEO_30D: "Το ΚΤΕΟ για {plate} λήγει σε 1 μήνα - κλείστε ραντεβού",
        _T.KTEO_14D: "⚠️ Το ΚΤΕΟ για {plate} λήγει σε 2 εβδομάδες!",
        _T.KTEO_7D: "🚨 Το ΚΤΕΟ για {plate} λήγει σε 1 εβδομάδα!",
        _T.KTEO_3D: "🚨 ΕΠΕΙΓΟΝ: Το ΚΤΕΟ για {plate} λήγει σε 3 ημέρες!",
        _T.KTEO_1D: "🚨 ΚΡΙΣΙΜΟ: Το ΚΤΕΟ για {plate} λήγει αύριο!",
        _T.KTEO_EXPIRED: "🚨 Το ΚΤΕΟ για {plate} έληξε σήμερα! Το όχημα δεν μπορεί να κυκλοφορήσει!",
        _T.KTEO_OVERDUE: "🚨 Το ΚΤΕΟ του {plate} έχει λήξει εδώ και {days} ημέρες! Το όχημα δεν μπορεί να κυκλοφορήσει!",
        _T.INSURANCE_60D: "Η ασφάλεια για {plate} λήγει σε 2 μήνες ({date})",
        _T.INSURANCE_30D: "Η ασφάλεια για {plate} λήγει σε 1 μήνα ({date})",
        _T.INSURANCE_14D: "Η ασφάλεια για {plate} λήγει σε 2 εβδομάδες ({date})",
        _T.INSURANCE_7D: "Η ασφάλεια για {plate} λήγει σε 7 ημέρες ({date})",
        _T.INSURANCE_3D: "Η ασφάλεια για {plate} λήγει σε 3 ημέρες ({date})",
        _T.INSURANCE_1D: "Η ασφάλεια για {plate} λήγει αύριο ({date})",
        _T.INSURANCE_EXPIRED: "🚨 Η ασφάλεια για {plate} έληξε! Το όχημα δεν μπορεί να ενοικιαστεί!",
        "insurance_expired_days": "🚨 Η ασφάλεια του {plate} έχει λήξει εδώ και {days} ημέρες!",
        _T.TIRES_30D: "Προγραμματισμένη αλλαγή ελαστικών για {plate} σε 30 ημέρες",
        _T.TIRES_14D: "Προγραμματισμένη αλλαγή ελαστικών για {plate} σε 14 ημέρες",
        _T.TIRES_7D: "Προγραμματισμένη αλλαγή ελαστικών για {plate} σε 7 ημέρες",
        _T.SERVICE_DUE: "Το {plate} χρειάζεται service σε {km} χλμ",
        _T.SERVICE_OVERDUE: "⚠️ Το {plate} έχει υπερβεί το service κατά {km} χλμ!",
        _T.MORNING_BRIEFING: "Καλημέρα! Σήμερα: {pickups} παραδόσεις, {returns} επιστροφές",
        _T.END_OF_DAY_SUMMARY: "Περίληψη ημέρας: {active} ενεργές ενοικιάσεις, {available} διαθέσιμα οχήματα",
        _T.WEEKEND_PLANNING: "Προετοιμασία σαββατοκύριακου: {count} κρατήσεις ξεκινούν το Σάββατο/Κυριακή",
        _T.WEEKLY_REVENUE_SUMMARY: "Εβδομαδιαία Περίληψη: {count} συμβόλαια, €{revenue} έσοδα",
        _T.DOUBLE_BOOKING: "Διπλή κράτηση εντοπίστηκε για {plate}! Ελέγξτε τα συμβόλαια άμεσα.",
        _T.MAINTENANCE_DURING_RENTAL: "⚠️ {item} του {plate} λήγει ενώ είναι ενοικιασμένο!",
        _T.GAP_OPPORTUNITY: "Ευκαιρία service: {plate} έχει {days} ημέρες ελεύθερο μεταξύ κρατήσεων",
        _T.MILESTONE_ACHIEVED: "🏆 Συγχαρητήρια! Ολοκληρώσατε το {count}ο συμβόλαιο!",
        _T.PERFECT_WEEK: "🌟 Τέλεια εβδομάδα! Καμία καθυστέρηση ή ακύρωση!",
    },
    "en": {
        _T.PICKUP_24H: "Prepare vehicle {plate} for pickup by {customer} tomorrow at {time}",
        _T.PICKUP_3H: "Pickup in 3 hours: {plate} for {customer}",
        _T.PICKUP_30MIN: "{customer} arrives in 30 minutes for {plate}",
        _T.RETURN_7D: "{plate} returns from {customer} in 7 days",
        _T.RETURN_3D: "{plate} returns in 3 days - prepare the inspection",
        _T.RETURN_1D: "{plate} returns tomorrow at {time}",
        _T.RETURN_3H: "Return in 3 hours: {plate}",
        _T.RETURN_OVERDUE: "Vehicle {plate} was not returned! Contact {customer}",
        "return_overdue_hours": "Vehicle {plate} was not returned! Delay: {hours} hours",
        _T.KTEO_60D: "KTEO for {plate} expires in 2 months ({date})",
        _T.KTEO_30D: "KTEO for {plate} expires in 1 month - book an appointment",
        _T.KTEO_14D: "⚠️ KTEO for {plate} expires in 2 weeks!",
        _T.KTEO_7D: "🚨 KTEO for {plate} expires in 1 week!",
        _T.KTEO_3D: "🚨 URGENT: KTEO for {plate} expires in 3 days!",
        _T.KTEO_1D: "🚨 CRITICAL: KTEO for {plate} expires tomorrow!",
        _T.KTEO_EXPIRED: "🚨 KTEO for {plate} expired today! The vehicle cannot be driven!",
        _T.KTEO_OVERDUE: "🚨 KTEO for {plate} expired {days} days ago! The vehicle cannot be driven!",
        _T.INSURANCE_60D: "Insurance for {plate} expires in 2 months ({date})",
        _T.INSURANCE_30D: "Insurance for {plate} expires in 1 month ({date})",
        _T.INSURANCE_14D: "Insurance for {plate} expires in 2 weeks ({date})",
        _T.INSURANCE_7D: "Insurance for {plate} expires in 7 days ({date})",
        _T.INSURANCE_3D: "Insurance for {plate} expires in 3 days ({date})",
        _T.INSURANCE_1D: "Insurance for {plate} expires tomorrow ({date})",
        _T.INSURANCE_EXPIRED: "🚨 Insurance for {plate} expired! The vehicle cannot be rented!",
        "insurance_expired_days": "🚨 Insurance for {plate} expired {days} days ago!",
        _T.TIRES_30D: "Scheduled tire change for {plate} in 30 days",
        _T.TIRES_14D: "Scheduled tire change for {plate} in 14 days",
        _T.TIRES_7D: "Scheduled tire change for {plate} in 7 days",
        _T.SERVICE_DUE: "{plate} needs service in {km} km",
        _T.SERVICE_OVERDUE: "⚠️ {plate} is {km} km past its service!",
        _T.MORNING_BRIEFING: "Good morning! Today: {pickups} pickups, {returns} returns",
        _T.END_OF_DAY_SUMMARY: "Day summary: {active} active rentals, {available} available vehicles",
        _T.WEEKEND_PLANNING: "Weekend planning: {count} bookings start on Saturday/Sunday",
        _T.WEEKLY_REVENUE_SUMMARY: "Weekly summary: {count} contracts, €{revenue} revenue",
        _T.DOUBLE_BOOKING: "Double booking detected for {plate}! Check the contracts now.",
        _T.MAINTENANCE_DURING_RENTAL: "⚠️ {item} of {plate} expires while it is rented!",
        _T.GAP_OPPORTUNITY: "Service opportunity: {plate} is free for {days} days between bookings",
        _T.MILESTONE_ACHIEVED: "🏆 Congratulations! You completed contract number {count}!",
        _T.PERFECT_WEEK: "🌟 Perfect week! No late returns or cancellations!",
    },
}

# Variant templates used by the periodic checks, keyed outside the type enum
RETURN_OVERDUE_HOURS = "return_overdue_hours"
INSURANCE_EXPIRED_DAYS = "insurance_expired_days"

# Names of the expiring item in maintenance-during-rental alerts
MAINTENANCE_ITEMS: Dict[str, Dict[str, str]] = {
    "el": {"kteo": "Το ΚΤΕΟ", "insurance": "Η ασφάλεια"},
    "en": {"kteo": "KTEO", "insurance": "Insurance"},
}


def render_message(key: str, language: str = "el", **params: Any) -> str:
    """Render the body of a notification.

    ``key`` is a notification type or one of the variant template names.
    Unknown languages fall back to Greek.

    Raises:
        KeyError: If no template exists for the key or a placeholder is missing
    """
    catalog = MESSAGES.get(language, MESSAGES["el"])
    # NotificationType members hash like their string values
    return catalog[key].format(**params)
