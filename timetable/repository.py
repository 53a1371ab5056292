"""Rule repository interface.

Storage of schedules and course rules belongs to the host application. The
timetable core only reads through this interface; the in-memory
implementation backs the CLI and the tests.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .models import CourseRule, Schedule


class RuleRepository(ABC):
    """Create/read/update/delete access to schedules and their course rules."""
    
    @abstractmethod
    def list_schedules(self) -> list[Schedule]:
        """Return every stored schedule."""
        pass
    
    @abstractmethod
    def get_schedule(self, schedule_id: str) -> Optional[Schedule]:
        """Return a schedule by id.
        
        Args:
            schedule_id: Schedule identifier.
            
        Returns:
            The schedule, or None if it does not exist.
        """
        pass
    
    @abstractmethod
    def create_schedule(self, schedule: Schedule) -> None:
        """Store a new schedule.
        
        Raises:
            ValueError: If a schedule with the same id exists.
        """
        pass
    
    @abstractmethod
    def delete_schedule(self, schedule_id: str) -> None:
        """Delete a schedule together with all of its rules.
        
        Raises:
            KeyError: If the schedule does not exist.
        """
        pass
    
    @abstractmethod
    def list_rules(self, schedule_id: str) -> list[CourseRule]:
        """Return the rules of a schedule in insertion order.
        
        Args:
            schedule_id: Owning schedule.
            
        Returns:
            Course rules, empty if the schedule has none.
        """
        pass
    
    @abstractmethod
    def create_rule(self, rule: CourseRule) -> None:
        """Store a new rule under its schedule.
        
        Raises:
            KeyError: If the rule's schedule does not exist.
        """
        pass
    
    @abstractmethod
    def update_rule(self, old_id: str, rule: CourseRule) -> None:
        """Replace the rule stored under ``old_id`` with ``rule``.
        
        Raises:
            KeyError: If no rule is stored under ``old_id``.
        """
        pass
    
    @abstractmethod
    def delete_rule(self, rule_id: str) -> None:
        """Remove a rule.
        
        Raises:
            KeyError: If the rule does not exist.
        """
        pass
    
    def active_schedule(self) -> Optional[Schedule]:
        """Return the first active schedule, if any."""
        for schedule in self.list_schedules():
            if schedule.is_active:
                return schedule
        return None


class InMemoryRuleRepository(RuleRepository):
    """Dictionary-backed repository."""
    
    def __init__(self) -> None:
        self._schedules: dict[str, Schedule] = {}
        self._rules: dict[str, CourseRule] = {}
    
    def list_schedules(self) -> list[Schedule]:
        return list(self._schedules.values())
    
    def get_schedule(self, schedule_id: str) -> Optional[Schedule]:
        return self._schedules.get(schedule_id)
    
    def create_schedule(self, schedule: Schedule) -> None:
        if schedule.id in self._schedules:
            raise ValueError(f"Schedule {schedule.id} already exists")
        self._schedules[schedule.id] = schedule
    
    def delete_schedule(self, schedule_id: str) -> None:
        if self._schedules.pop(schedule_id, None) is None:
            raise KeyError(schedule_id)
        self._rules = {
            rule_id: rule for rule_id, rule in self._rules.items()
            if rule.schedule_id != schedule_id
        }
    
    def list_rules(self, schedule_id: str) -> list[CourseRule]:
        return [rule for rule in self._rules.values() if rule.schedule_id == schedule_id]
    
    def create_rule(self, rule: CourseRule) -> None:
        if rule.schedule_id not in self._schedules:
            raise KeyError(rule.schedule_id)
        self._rules[rule.id] = rule
    
    def update_rule(self, old_id: str, rule: CourseRule) -> None:
        if old_id not in self._rules:
            raise KeyError(old_id)
        # Keep insertion order so listing stays stable across edits.
        self._rules = {
            (rule.id if rule_id == old_id else rule_id): (rule if rule_id == old_id else existing)
            for rule_id, existing in self._rules.items()
        }
    
    def delete_rule(self, rule_id: str) -> None:
        if self._rules.pop(rule_id, None) is None:
            raise KeyError(rule_id)
