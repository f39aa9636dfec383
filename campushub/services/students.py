from campushub.models.students import StudentProfile


class StudentDirectory:
    def __init__(self):
        self._students: dict[str, StudentProfile] = {}

    def upsert(self, profile: StudentProfile) -> StudentProfile:
        self._students[profile.id] = profile.model_copy()
        return profile

    def get(self, student_id: str) -> StudentProfile | None:
        profile = self._students.get(student_id)
        return profile.model_copy() if profile else None

    def load(self, items: list[dict]) -> None:
        profiles = [StudentProfile.model_validate(item) for item in items or []]
        self._students = {p.id: p for p in profiles}

    def dump(self) -> list[dict]:
        return [p.model_dump(mode="json") for p in self._students.values()]
