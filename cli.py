import argparse
import json
import logging
import shutil

from config import configure_logging
from db import KeyValueRepository
from session_service import SessionService
from settings_schema import load_settings
from workout_data import WorkoutDataStore
from workout_schema import Equipment, Exercise, ExerciseTag, Routine, RoutineExercise

logger = logging.getLogger(__name__)


def open_store(db_path: str, yaml_path: str = "settings.yaml") -> WorkoutDataStore:
    settings = load_settings(yaml_path)
    return WorkoutDataStore(KeyValueRepository(db_path or settings.db_path), settings)


def export_data(db_path: str, out_path: str, yaml_path: str = "settings.yaml") -> None:
    store = open_store(db_path, yaml_path)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(store.export(), f, indent=2)
    logger.info("exported data to %s", out_path)


def import_data(db_path: str, in_path: str, yaml_path: str = "settings.yaml") -> None:
    """Replace all stored collections with the contents of an export file."""
    with open(in_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    store = open_store(db_path, yaml_path)
    store.replace_all(
        data.get("exercises", []),
        data.get("routines", []),
        data.get("sessions", []),
    )
    logger.info("imported data from %s", in_path)


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def demo_data(db_path: str, yaml_path: str) -> None:
    """Populate the store with demo exercises, a routine and one workout if empty."""
    store = open_store(db_path, yaml_path)
    if store.exercises or store.routines:
        print("Store already contains data")
        return
    bench = store.add_exercise(
        Exercise(
            name="Bench Press",
            equipment=Equipment.BARBELL,
            tags=[ExerciseTag.PUSH, ExerciseTag.CHEST],
        )
    )
    fly = store.add_exercise(
        Exercise(name="Cable Fly", equipment=Equipment.CABLE, tags=[ExerciseTag.CHEST])
    )
    routine = store.add_routine(
        Routine(
            name="Push Day",
            exercises=[
                RoutineExercise(exercise_id=bench.id, sets=3, reps=5),
                RoutineExercise(exercise_id=fly.id, sets=3, reps=12),
            ],
        )
    )
    service = SessionService(store)
    session = service.start_workout(routine.id)
    for entry in session.exercises:
        for workout_set in entry.sets:
            service.toggle_set_completed(session.id, workout_set.id)
    service.finish_workout(session.id)
    print("Demo data inserted")


def main() -> None:
    parser = argparse.ArgumentParser(description="Utility commands")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser("export")
    exp.add_argument("--db", default=None)
    exp.add_argument("--out", default="liftlog-export.json")
    exp.add_argument("--yaml", default="settings.yaml")

    imp = sub.add_parser("import")
    imp.add_argument("--db", default=None)
    imp.add_argument("--in", dest="src", required=True)
    imp.add_argument("--yaml", default="settings.yaml")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default="workout.db")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default="workout.db")

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default=None)
    demo.add_argument("--yaml", default="settings.yaml")

    serve = sub.add_parser("serve")
    serve.add_argument("--db", default=None)
    serve.add_argument("--yaml", default="settings.yaml")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()
    yaml_path = getattr(args, "yaml", "settings.yaml")
    configure_logging(args.log_level or load_settings(yaml_path).log_level)

    if args.cmd == "export":
        export_data(args.db, args.out, args.yaml)
    elif args.cmd == "import":
        import_data(args.db, args.src, args.yaml)
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    elif args.cmd == "demo":
        demo_data(args.db, args.yaml)
    elif args.cmd == "serve":
        import uvicorn
        from rest_api import TrackerAPI

        api = TrackerAPI(db_path=args.db, yaml_path=args.yaml)
        uvicorn.run(api.app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
