from lms.main import app, read_root


def _mounted_paths():
    # Included routers are not guaranteed to expose ``path``; the schema lists every operation.
    return set(app.openapi()["paths"])


def test_routes_are_mounted_under_api_v2():
    paths = _mounted_paths()
    assert "/api/v2/users/login" in paths
    assert "/api/v2/users/me" in paths
    assert "/api/v2/courses/{course_id}/enroll" in paths
    assert "/api/v2/progress/courses/{course_id}/lessons/{lesson_id}" in paths
    assert "/api/v2/quizzes/{quiz_id}/submit" in paths
    assert "/api/v2/certificates/verify/{certificate_id}" in paths
    assert "/api/v2/discussions/{discussion_id}/upvote" in paths
    assert "/api/v2/announcements/{announcement_id}" in paths


def test_root():
    assert "message" in read_root()
