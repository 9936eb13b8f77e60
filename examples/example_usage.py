"""Example: drive the service layer directly (no Flask).

Controllers are a thin layer; the time-tracking rules live in the services.
"""

import importlib

from config import get_settings_module

from src.time_tracker.time_tracker.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    user_id = 1
    container.rollover_sweeper.sweep(user_id)
    current = container.time_entry_service.current_entry(user_id)
    print("current:", current.to_dict() if current else None)
    for entry in container.time_entry_service.my_entries(user_id, limit=5):
        print(entry.to_dict())

    container.dispatcher.shutdown(wait=True)


if __name__ == "__main__":
    main()
