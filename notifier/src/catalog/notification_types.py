"""Notification types, priorities and per-type delivery configuration.

Every notification the fleet service can emit is listed here together with
its priority, category, titles and sound/vibration flags. The preference
filter and the delivery pipeline only ever look types up in
``NOTIFICATION_CONFIGS``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List


class NotificationPriority(str, Enum):
    """Delivery priority. Critical bypasses quiet hours and daily caps."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NotificationCategory(str, Enum):
    """Category used for per-category switches in user preferences."""

    CONTRACT = "contract"
    MAINTENANCE = "maintenance"
    FINANCIAL = "financial"
    OPERATIONAL = "operational"
    ALERT = "alert"
    MILESTONE = "milestone"


class NotificationType(str, Enum):
    """All notification types."""

    # Contract
    PICKUP_24H = "pickup_24h"
    PICKUP_3H = "pickup_3h"
    PICKUP_30MIN = "pickup_30min"
    RETURN_7D = "return_7d"
    RETURN_3D = "return_3d"
    RETURN_1D = "return_1d"
    RETURN_3H = "return_3h"
    RETURN_OVERDUE = "return_overdue"

    # Maintenance - KTEO
    KTEO_60D = "kteo_60d"
    KTEO_30D = "kteo_30d"
    KTEO_14D = "kteo_14d"
    KTEO_7D = "kteo_7d"
    KTEO_3D = "kteo_3d"
    KTEO_1D = "kteo_1d"
    KTEO_EXPIRED = "kteo_expired"
    KTEO_OVERDUE = "kteo_overdue"

    # Maintenance - insurance
    INSURANCE_60D = "insurance_60d"
    INSURANCE_30D = "insurance_30d"
    INSURANCE_14D = "insurance_14d"
    INSURANCE_7D = "insurance_7d"
    INSURANCE_3D = "insurance_3d"
    INSURANCE_1D = "insurance_1d"
    INSURANCE_EXPIRED = "insurance_expired"

    # Maintenance - road tax
    ROAD_TAX_30D = "road_tax_30d"
    ROAD_TAX_14D = "road_tax_14d"
    ROAD_TAX_7D = "road_tax_7d"
    ROAD_TAX_EXPIRED = "road_tax_expired"

    # Maintenance - tires & service
    TIRES_30D = "tires_30d"
    TIRES_14D = "tires_14d"
    TIRES_7D = "tires_7d"
    SERVICE_DUE = "service_due"
    SERVICE_OVERDUE = "service_overdue"

    # Financial
    PAYMENT_DUE_TOMORROW = "payment_due_tomorrow"
    PAYMENT_OVERDUE = "payment_overdue"
    DEPOSIT_NOT_RECEIVED = "deposit_not_received"
    DAILY_REVENUE_SUMMARY = "daily_revenue_summary"
    WEEKLY_REVENUE_SUMMARY = "weekly_revenue_summary"
    MONTHLY_MILESTONE = "monthly_milestone"

    # Availability
    ALL_VEHICLES_BOOKED = "all_vehicles_booked"
    LOW_AVAILABILITY = "low_availability"
    VEHICLE_AVAILABLE = "vehicle_available"

    # Damage & incident
    DAMAGE_REPORTED = "damage_reported"
    DAMAGE_REPAIR_COMPLETED = "damage_repair_completed"

    # Operational
    MORNING_BRIEFING = "morning_briefing"
    END_OF_DAY_SUMMARY = "end_of_day_summary"
    WEEKEND_PLANNING = "weekend_planning"

    # Smart alerts
    DOUBLE_BOOKING = "double_booking"
    MAINTENANCE_DURING_RENTAL = "maintenance_during_rental"
    GAP_OPPORTUNITY = "gap_opportunity"

    # Milestones
    MILESTONE_ACHIEVED = "milestone_achieved"
    PERFECT_WEEK = "perfect_week"

    GENERAL = "general"


@dataclass(frozen=True)
class NotificationTypeConfig:
    """Static delivery settings of one notification type."""

    type: NotificationType
    priority: NotificationPriority
    title: str
    title_en: str
    category: NotificationCategory
    emoji: str
    sound_enabled: bool
    vibration_enabled: bool

    def localized_title(self, language: str = "el") -> str:
        """Return the title in the requested language (Greek by default)."""
        return self.title_en if language == "en" else self.title


_P = NotificationPriority
_C = NotificationCategory
_T = NotificationType

# type, priority, Greek title, English title, category, emoji, sound, vibration
_CATALOG = [
    (_T.PICKUP_24H, _P.MEDIUM, "Προετοιμασία Παράδοσης", "Prepare Vehicle", _C.CONTRACT, "🚗", True, True),
    (_T.PICKUP_3H, _P.HIGH, "Παράδοση Σήμερα", "Pickup Today", _C.CONTRACT, "🚗", True, True),
    (_T.PICKUP_30MIN, _P.HIGH, "Πελάτης Έρχεται", "Customer Arriving", _C.CONTRACT, "⏰", True, True),
    (_T.RETURN_7D, _P.LOW, "Επιστροφή Την Επόμενη Εβδομάδα", "Return Next Week", _C.CONTRACT, "📅", False, False),
    (_T.RETURN_3D, _P.MEDIUM, "Επιστροφή Σε 3 Ημέρες", "Return in 3 Days", _C.CONTRACT, "📅", True, False),
    (_T.RETURN_1D, _P.MEDIUM, "Επιστροφή Αύριο", "Return Tomorrow", _C.CONTRACT, "🔜", True, True),
    (_T.RETURN_3H, _P.HIGH, "Επιστροφή Σήμερα", "Return Today", _C.CONTRACT, "⏰", True, True),
    (_T.RETURN_OVERDUE, _P.CRITICAL, "⚠️ Καθυστερημένη Επιστροφή", "⚠️ Overdue Return", _C.ALERT, "🚨", True, True),

    (_T.KTEO_60D, _P.LOW, "ΚΤΕΟ Σε 2 Μήνες", "KTEO in 2 Months", _C.MAINTENANCE, "🔧", False, False),
    (_T.KTEO_30D, _P.MEDIUM, "ΚΤΕΟ Σε 1 Μήνα", "KTEO in 1 Month", _C.MAINTENANCE, "🔧", True, False),
    (_T.KTEO_14D, _P.HIGH, "⚠️ ΚΤΕΟ Σε 2 Εβδομάδες", "⚠️ KTEO in 2 Weeks", _C.MAINTENANCE, "⚠️", True, True),
    (_T.KTEO_7D, _P.HIGH, "🚨 ΚΤΕΟ Σε 1 Εβδομάδα", "🚨 KTEO in 1 Week", _C.MAINTENANCE, "🚨", True, True),
    (_T.KTEO_3D, _P.CRITICAL, "🚨 ΚΤΕΟ Σε 3 Ημέρες", "🚨 KTEO in 3 Days", _C.MAINTENANCE, "🚨", True, True),
    (_T.KTEO_1D, _P.CRITICAL, "🚨 ΚΤΕΟ Λήγει Αύριο!", "🚨 KTEO Expires Tomorrow!", _C.ALERT, "🚨", True, True),
    (_T.KTEO_EXPIRED, _P.CRITICAL, "🚨 ΚΤΕΟ ΕΛΗΞΕ!", "🚨 KTEO EXPIRED!", _C.ALERT, "🚨", True, True),
    (_T.KTEO_OVERDUE, _P.CRITICAL, "🚨 ΚΤΕΟ Καθυστερημένο", "🚨 KTEO Overdue", _C.ALERT, "🚨", True, True),

    (_T.INSURANCE_60D, _P.LOW, "Ασφάλεια Σε 2 Μήνες", "Insurance in 2 Months", _C.MAINTENANCE, "🛡️", False, False),
    (_T.INSURANCE_30D, _P.MEDIUM, "Ασφάλεια Σε 1 Μήνα", "Insurance in 1 Month", _C.MAINTENANCE, "🛡️", True, False),
    (_T.INSURANCE_14D, _P.HIGH, "⚠️ Ασφάλεια Σε 2 Εβδομάδες", "⚠️ Insurance in 2 Weeks", _C.MAINTENANCE, "⚠️", True, True),
    (_T.INSURANCE_7D, _P.CRITICAL, "🚨 Ασφάλεια Σε 1 Εβδομάδα", "🚨 Insurance in 1 Week", _C.MAINTENANCE, "🚨", True, True),
    (_T.INSURANCE_3D, _P.CRITICAL, "🚨 Ασφάλεια Σε 3 Ημέρες", "🚨 Insurance in 3 Days", _C.ALERT, "🚨", True, True),
    (_T.INSURANCE_1D, _P.CRITICAL, "🚨 Ασφάλεια Λήγει Αύριο!", "🚨 Insurance Expires Tomorrow!", _C.ALERT, "🚨", True, True),
    (_T.INSURANCE_EXPIRED, _P.CRITICAL, "🚨 ΑΣΦΑΛΕΙΑ ΕΛΗΞΕ!", "🚨 INSURANCE EXPIRED!", _C.ALERT, "🚨", True, True),

    (_T.ROAD_TAX_30D, _P.MEDIUM, "Τέλη Κυκλοφορίας Σε 1 Μήνα", "Road Tax in 1 Month", _C.MAINTENANCE, "💳", True, False),
    (_T.ROAD_TAX_14D, _P.HIGH, "⚠️ Τέλη Κυκλοφορίας Σε 2 Εβδομάδες", "⚠️ Road Tax in 2 Weeks", _C.MAINTENANCE, "⚠️", True, True),
    (_T.ROAD_TAX_7D, _P.HIGH, "🚨 Τέλη Κυκλοφορίας Σε 1 Εβδομάδα", "🚨 Road Tax in 1 Week", _C.MAINTENANCE, "🚨", True, True),
    (_T.ROAD_TAX_EXPIRED, _P.CRITICAL, "🚨 Τέλη Κυκλοφορίας Έληξαν", "🚨 Road Tax Expired", _C.ALERT, "🚨", True, True),

    (_T.TIRES_30D, _P.LOW, "Αλλαγή Ελαστικών Σε 1 Μήνα", "Tire Change in 1 Month", _C.MAINTENANCE, "🛞", False, False),
    (_T.TIRES_14D, _P.MEDIUM, "Αλλαγή Ελαστικών Σε 2 Εβδομάδες", "Tire Change in 2 Weeks", _C.MAINTENANCE, "🛞", True, False),
    (_T.TIRES_7D, _P.MEDIUM, "Αλλαγή Ελαστικών Σε 1 Εβδομάδα", "Tire Change in 1 Week", _C.MAINTENANCE, "🛞", True, True),
    (_T.SERVICE_DUE, _P.MEDIUM, "Service Απαιτείται", "Service Due", _C.MAINTENANCE, "🔧", True, False),
    (_T.SERVICE_OVERDUE, _P.HIGH, "⚠️ Service Καθυστερημένο", "⚠️ Service Overdue", _C.MAINTENANCE, "⚠️", True, True),

    (_T.PAYMENT_DUE_TOMORROW, _P.HIGH, "Πληρωμή Αύριο", "Payment Due Tomorrow", _C.FINANCIAL, "💰", True, True),
    (_T.PAYMENT_OVERDUE, _P.CRITICAL, "⚠️ Καθυστερημένη Πληρωμή", "⚠️ Payment Overdue", _C.FINANCIAL, "⚠️", True, True),
    (_T.DEPOSIT_NOT_RECEIVED, _P.HIGH, "Προκαταβολή Εκκρεμεί", "Deposit Pending", _C.FINANCIAL, "💳", True, True),
    (_T.DAILY_REVENUE_SUMMARY, _P.LOW, "Ημερήσια Περίληψη", "Daily Summary", _C.OPERATIONAL, "📊", False, False),
    (_T.WEEKLY_REVENUE_SUMMARY, _P.LOW, "Εβδομαδιαία Περίληψη", "Weekly Summary", _C.OPERATIONAL, "📈", False, False),
    (_T.MONTHLY_MILESTONE, _P.LOW, "🎉 Επίτευγμα Μήνα!", "🎉 Monthly Milestone!", _C.MILESTONE, "🎉", True, True),

    (_T.ALL_VEHICLES_BOOKED, _P.LOW, "🎉 Όλα Τα Οχήματα Κλεισμένα!", "🎉 All Vehicles Booked!", _C.OPERATIONAL, "🎉", True, True),
    (_T.LOW_AVAILABILITY, _P.MEDIUM, "Χαμηλή Διαθεσιμότητα", "Low Availability", _C.OPERATIONAL, "⚠️", False, False),
    (_T.VEHICLE_AVAILABLE, _P.LOW, "Όχημα Διαθέσιμο", "Vehicle Available", _C.OPERATIONAL, "✅", False, False),

    (_T.DAMAGE_REPORTED, _P.CRITICAL, "⚠️ Νέα Ζημιά Αναφέρθηκε", "⚠️ Damage Reported", _C.ALERT, "⚠️", True, True),
    (_T.DAMAGE_REPAIR_COMPLETED, _P.LOW, "✅ Επισκευή Ολοκληρώθηκε", "✅ Repair Completed", _C.OPERATIONAL, "✅", False, False),

    (_T.MORNING_BRIEFING, _P.MEDIUM, "🌅 Καλημέρα - Σημερινό Πρόγραμμα", "🌅 Good Morning - Today's Schedule", _C.OPERATIONAL, "🌅", True, False),
    (_T.END_OF_DAY_SUMMARY, _P.LOW, "🌙 Περίληψη Ημέρας", "🌙 End of Day Summary", _C.OPERATIONAL, "🌙", False, False),
    (_T.WEEKEND_PLANNING, _P.MEDIUM, "📅 Σχεδιασμός Σαββατοκύριακου", "📅 Weekend Planning", _C.OPERATIONAL, "📅", False, False),

    (_T.DOUBLE_BOOKING, _P.CRITICAL, "🚨 Διπλή Κράτηση!", "🚨 Double Booking!", _C.ALERT, "🚨", True, True),
    (_T.MAINTENANCE_DURING_RENTAL, _P.CRITICAL, "⚠️ Συντήρηση Κατά Την Ενοικίαση", "⚠️ Maintenance During Rental", _C.ALERT, "⚠️", True, True),
    (_T.GAP_OPPORTUNITY, _P.LOW, "💡 Ευκαιρία Service", "💡 Service Opportunity", _C.OPERATIONAL, "💡", False, False),

    (_T.MILESTONE_ACHIEVED, _P.LOW, "🏆 Επίτευγμα!", "🏆 Milestone Achieved!", _C.MILESTONE, "🏆", True, True),
    (_T.PERFECT_WEEK, _P.LOW, "🌟 Τέλεια Εβδομάδα!", "🌟 Perfect Week!", _C.MILESTONE, "🌟", True, True),

    (_T.GENERAL, _P.MEDIUM, "Ειδοποίηση", "Notification", _C.OPERATIONAL, "📢", True, True),
]

NOTIFICATION_CONFIGS: Dict[NotificationType, NotificationTypeConfig] = {
    entry[0]: NotificationTypeConfig(*entry) for entry in _CATALOG
}

# Categories with a user-facing on/off switch; alerts cannot be muted by category
CATEGORY_PREFERENCE_COLUMNS: Dict[NotificationCategory, str] = {
    NotificationCategory.CONTRACT: "enable_contract_notifications",
    NotificationCategory.MAINTENANCE: "enable_maintenance_notifications",
    NotificationCategory.FINANCIAL: "enable_financial_notifications",
    NotificationCategory.OPERATIONAL: "enable_operational_notifications",
    NotificationCategory.MILESTONE: "enable_milestone_notifications",
}

ALL_NOTIFICATION_TYPES: List[str] = [t.value for t in NotificationType]

DEFAULT_NOTIFICATION_PREFERENCES = {
    "enabled_types": ALL_NOTIFICATION_TYPES,
    "quiet_hours_enabled": True,
    "quiet_hours_start": "22:00",
    "quiet_hours_end": "07:00",
    "critical_only_mode": False,
    "max_daily_notifications": 10,
    "timezone": "Europe/Athens",
}


def get_notification_config(notification_type: NotificationType | str) -> NotificationTypeConfig:
    """Look up the configuration of a notification type.

    Raises:
        ValueError: If the type is unknown
    """
    return NOTIFICATION_CONFIGS[NotificationType(notification_type)]
