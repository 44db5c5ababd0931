#!/usr/bin/env python3
"""
CLI Interface - Simple command line interface for the habit tracker
"""

import logging
from datetime import date
from typing import Optional

from .config import Config, load_config, create_sample_config
from .core.core_app import FitwellApp
from .domain import User
from .errors import FitwellError


class CLI:
    """Command line interface"""

    def __init__(self, config_file: str = "config.yaml"):
        self.config_file = config_file
        self.app: Optional[FitwellApp] = None
        self.current_user: Optional[User] = None

    def run(self):
        """Main CLI loop"""
        print("FitWell Habit Tracker")
        print("=" * 40)

        try:
            config = self._setup_config()

            # Setup logging
            logging.basicConfig(level=getattr(logging, config.log_level.upper()))

            self.app = FitwellApp(config)
            self.app.initialize()

            self._restore_active_user()
            self._show_status()

            self._main_loop()

        except KeyboardInterrupt:
            print("\nGoodbye!")
        except Exception as e:
            print(f"Error: {e}")
            logging.error(f"CLI error: {e}", exc_info=True)
            raise
        finally:
            if self.app:
                self.app.cleanup()

    def _setup_config(self) -> Config:
        """Setup configuration and default files"""
        if create_sample_config(self.config_file):
            print(f"Created sample config file: {self.config_file}")
        return load_config(self.config_file)

    def _restore_active_user(self):
        settings = self.app.get_settings()
        if settings.last_active_user_id:
            self.current_user = self.app.get_user(settings.last_active_user_id)

    def _show_status(self):
        """Show application status"""
        users = self.app.get_users()
        print(f"\nStatus:")
        print(f"- Database: {self.app.db.path}")
        print(f"- Profiles: {len(users)}")
        print(f"- Active profile: {self.current_user.name if self.current_user else 'none'}")

    def _main_loop(self):
        """Main interaction loop"""
        while True:
            print(f"\n{'='*60}")
            print(f"FITWELL - {self.current_user.name if self.current_user else 'no profile selected'}")
            print(f"{'='*60}")
            print("1. List profiles")
            print("2. Create profile")
            print("3. Switch profile")
            print("4. Toggle a goal for today")
            print("5. Show streaks")
            print("6. Show month summary")
            print("7. Log weight")
            print("8. Show settings")
            print("9. Exit")
            print("-" * 60)

            choice = input("Enter your choice (1-9): ").strip()

            try:
                if choice == "1":
                    self._list_profiles()
                elif choice == "2":
                    self._create_profile()
                elif choice == "3":
                    self._switch_profile()
                elif choice == "4":
                    self._toggle_today()
                elif choice == "5":
                    self._show_streaks()
                elif choice == "6":
                    self._show_month_summary()
                elif choice == "7":
                    self._log_weight()
                elif choice == "8":
                    self._show_settings()
                elif choice == "9":
                    break
                else:
                    print("Invalid choice. Please try again.")

            except FitwellError as e:
                print(f"Error: {e}")
                logging.error(f"Menu action error: {e}")

    def _require_user(self) -> bool:
        if self.current_user is None:
            print("Create or select a profile first.")
            return False
        return True

    def _list_profiles(self):
        users = self.app.get_users()
        print(f"\nProfiles ({len(users)}):")
        for i, user in enumerate(users, 1):
            marker = "*" if self.current_user and user.id == self.current_user.id else " "
            print(f" {marker}{i}. {user.name}")

    def _create_profile(self):
        first_name = input("First name: ").strip()
        last_name = input("Last name: ").strip()
        birthday = input("Birthday (YYYY-MM-DD, optional): ").strip() or None
        user = self.app.create_user(first_name, last_name, birthday=birthday)
        self._select(user)
        print(f"Created profile {user.name}")

    def _switch_profile(self):
        users = self.app.get_users()
        self._list_profiles()
        if not users:
            return
        choice = input(f"Select profile (1-{len(users)}): ").strip()
        if not choice.isdigit() or not 1 <= int(choice) <= len(users):
            print("Invalid choice.")
            return
        self._select(users[int(choice) - 1])

    def _select(self, user: User):
        self.current_user = user
        self.app.update_settings({"last_active_user_id": user.id})

    def _toggle_today(self):
        if not self._require_user():
            return
        goals = [goal for goal in self.app.get_goals(self.current_user.id) if goal.is_active]
        if not goals:
            print("No active goals.")
            return
        today = date.today()
        for i, goal in enumerate(goals, 1):
            log = self.app.get_log_for_date(self.current_user.id, goal.id, today)
            mark = "x" if log and log.completed else " "
            print(f"  {i}. [{mark}] {goal.name}")
        choice = input(f"Toggle goal (1-{len(goals)}): ").strip()
        if not choice.isdigit() or not 1 <= int(choice) <= len(goals):
            print("Invalid choice.")
            return
        goal = goals[int(choice) - 1]
        log = self.app.toggle_daily_log(self.current_user.id, goal.id, today)
        print(f"{goal.name}: {'done' if log.completed else 'not done'} for {today.isoformat()}")

    def _show_streaks(self):
        if not self._require_user():
            return
        print("\nStreaks:")
        for goal in self.app.get_goals(self.current_user.id):
            if not goal.is_active:
                continue
            streak = self.app.get_streak(goal.id)
            print(f"  - {goal.name}: current {streak.current_streak}, longest {streak.longest_streak}")

    def _show_month_summary(self):
        if not self._require_user():
            return
        month = input("Month (YYYY-MM, blank for this month): ").strip() or date.today().strftime("%Y-%m")
        summary = self.app.get_month_summary(self.current_user.id, month)
        print(f"\n{summary.month}: {summary.completed_days}/{summary.total_days} days complete, "
              f"{summary.partial_days} partial, {summary.streak_days} goals checked off")

    def _log_weight(self):
        if not self._require_user():
            return
        settings = self.app.get_settings()
        raw = input(f"Weight ({settings.weight_unit.value}): ").strip()
        try:
            weight = float(raw)
        except ValueError:
            print("Invalid weight.")
            return
        entry = self.app.add_weight_entry(self.current_user.id, date.today(), weight, settings.weight_unit)
        change = self.app.get_weight_change(self.current_user.id, 7)
        print(f"Logged {entry.weight} {entry.unit.value} on {entry.date.isoformat()}")
        if change is not None:
            print(f"Change over 7 days: {change:+.1f} {entry.unit.value}")

    def _show_settings(self):
        settings = self.app.get_settings()
        for key, value in settings.to_dict().items():
            print(f"  - {key}: {value}")


def main():
    """CLI entry point"""
    cli = CLI()
    cli.run()


if __name__ == "__main__":
    main()
