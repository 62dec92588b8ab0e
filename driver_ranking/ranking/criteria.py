"""
Driver evaluation criteria.

Two main criteria (administrative and technical evaluation), eight
sub-criteria and ten sub-sub-criteria. Overtime is the only benefit group;
every other leaf counts incidents and is a cost.
"""

from .hierarchy import CriteriaHierarchy, Criterion


def _node(id, name, level, parent_id, children=(), is_benefit=None, description=None):
    return Criterion(
        id=id,
        name=name,
        level=level,
        parent_id=parent_id,
        children=tuple(children),
        is_benefit=is_benefit,
        description=description,
    )


DRIVER_CRITERIA = [
    # Level 1: Main Criteria
    _node(
        "admin", "Administrative Evaluation", 1, None,
        children=["attendance", "overtime", "accident", "discipline"],
        description="Overall evaluation based on the driver's administrative records.",
    ),
    _node(
        "technical", "Technical Evaluation", 1, None,
        children=["acceleration", "speed", "engine", "idle"],
        description="Evaluation based on vehicle usage and technical driving performance.",
    ),

    # Level 2: Sub-Criteria
    _node(
        "attendance", "Absence on Health Grounds", 2, "admin", is_benefit=False,
        description="Absence from work for health reasons. Higher values count against the driver.",
    ),
    _node(
        "overtime", "Overtime", 2, "admin",
        children=["normal_overtime", "weekend_overtime", "holiday_overtime"],
        description="Amount of overtime worked. Higher values count in favor of the driver.",
    ),
    _node(
        "accident", "Accidents", 2, "admin",
        children=["fatal_accident", "injury_accident", "material_damage_accident"],
        description="Accidents by type and count. Higher values count against the driver.",
    ),
    _node(
        "discipline", "Disciplinary Violations", 2, "admin",
        children=[
            "first_degree_dismissal",
            "second_degree_dismissal",
            "third_degree_dismissal",
            "fourth_degree_dismissal",
        ],
        description="Disciplinary referrals. Higher values count against the driver.",
    ),
    _node(
        "acceleration", "Harsh Acceleration Count", 2, "technical", is_benefit=False,
        description="Number of sudden or incorrect accelerations.",
    ),
    _node(
        "speed", "Speeding Violation Count", 2, "technical", is_benefit=False,
        description="Number of speed limit violations.",
    ),
    _node(
        "engine", "Engine (Red Lamp) Warnings", 2, "technical", is_benefit=False,
        description="Number of red engine warning lamps.",
    ),
    _node(
        "idle", "Idling Violation Count", 2, "technical", is_benefit=False,
        description="Number of excessive idling violations.",
    ),

    # Level 3: under Overtime
    _node(
        "normal_overtime", "Normal Overtime", 3, "overtime", is_benefit=True,
        description="Overtime on regular working days.",
    ),
    _node(
        "weekend_overtime", "Weekend Overtime", 3, "overtime", is_benefit=True,
        description="Overtime on weekly rest days.",
    ),
    _node(
        "holiday_overtime", "Public Holiday Overtime", 3, "overtime", is_benefit=True,
        description="Overtime on public holidays.",
    ),

    # Level 3: under Accident
    _node(
        "fatal_accident", "Fatal Accidents", 3, "accident", is_benefit=False,
        description="Accidents resulting in death. The most severe negative factor.",
    ),
    _node(
        "injury_accident", "Injury Accidents", 3, "accident", is_benefit=False,
        description="Accidents resulting in injury.",
    ),
    _node(
        "material_damage_accident", "Material Damage Accidents", 3, "accident", is_benefit=False,
        description="Accidents with material damage only.",
    ),

    # Level 3: under Discipline (referrals per kilometre driven)
    _node(
        "first_degree_dismissal", "1st Degree Disciplinary Referrals per km", 3, "discipline",
        is_benefit=False,
        description="Referrals for first degree disciplinary violations, per kilometre.",
    ),
    _node(
        "second_degree_dismissal", "2nd Degree Disciplinary Referrals per km", 3, "discipline",
        is_benefit=False,
        description="Referrals for second degree disciplinary violations, per kilometre.",
    ),
    _node(
        "third_degree_dismissal", "3rd Degree Disciplinary Referrals per km", 3, "discipline",
        is_benefit=False,
        description="Referrals for third degree disciplinary violations, per kilometre.",
    ),
    _node(
        "fourth_degree_dismissal", "4th Degree Disciplinary Referrals per km", 3, "discipline",
        is_benefit=False,
        description="Referrals for fourth degree disciplinary violations, per kilometre.",
    ),
]


def build_driver_hierarchy() -> CriteriaHierarchy:
    """Fresh registry over the driver evaluation criteria."""
    return CriteriaHierarchy(DRIVER_CRITERIA)
