"""API tests using FastAPI TestClient."""
import pytest

from curriculum_api.container import get_asset_store
from curriculum_api.persistence.interfaces.asset_store import StoredAsset

IMPORT_PAYLOAD = {
    "board_title": "CBSE",
    "class_title": "6",
    "subject_title": "Social Studies",
    "chapter_title": "Chapter 9",
    "unit_title": "Unit 1",
    "lessons": [
        {
            "lesson_title": "Our Family",
            "concepts": [
                {"type": "statement", "text": "A family lives together."},
                {"question": "Who is your mother's mother?", "options": ["Aunt", "Grandmother"], "answer": "Grandmother"},
                {"type": "fillups", "question": "My father's brother is my ___.", "answer": "uncle"},
                {"words": ["love", "We", "family", "our"], "answer": "We love our family"},
            ],
        }
    ],
}


@pytest.fixture
def learner(client):
    resp = client.post("/api/auth/register", json={"username": "meera", "dateOfBirth": "2013-08-15"})
    assert resp.status_code == 201
    return resp.json()


# ------------------------------------------------------------------
# Health
# ------------------------------------------------------------------
def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# ------------------------------------------------------------------
# Auth
# ------------------------------------------------------------------
def test_register_returns_token(learner):
    assert learner["username"] == "meera"
    assert learner["onboardingCompleted"] is False
    assert "token" in learner


def test_register_taken_username(client, learner):
    resp = client.post("/api/auth/register", json={"username": "meera", "dateOfBirth": "2013-08-15"})
    assert resp.status_code == 409


def test_login_success(client, learner):
    resp = client.post("/api/auth/login", json={"username": "meera", "dateOfBirth": "2013-08-15"})
    assert resp.status_code == 200
    assert resp.json()["id"] == learner["id"]
    assert "token" in resp.json()


def test_login_bad_date_of_birth(client, learner):
    resp = client.post("/api/auth/login", json={"username": "meera", "dateOfBirth": "2013-08-16"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid credentials"


def test_get_profile(client, learner):
    resp = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {learner['token']}"})
    assert resp.status_code == 200
    assert resp.json()["username"] == "meera"


def test_profile_requires_token(client):
    assert client.get("/api/auth/profile").status_code == 401
    assert client.get("/api/auth/profile", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_get_user_and_check_username(client, learner):
    assert client.get(f"/api/auth/user/{learner['id']}").json()["username"] == "meera"
    assert client.get("/api/auth/user/nope").status_code == 404
    assert client.get("/api/auth/check-username", params={"username": "meera"}).json() == {"available": False}
    assert client.get("/api/auth/check-username", params={"username": "zoya"}).json() == {"available": True}
    assert client.get("/api/auth/check-username").status_code == 400


def test_onboarding_resolves_ids(client, learner):
    client.post("/api/curriculum/import", json=IMPORT_PAYLOAD)
    resp = client.put(
        "/api/auth/onboarding",
        json={"userId": learner["id"], "board": "CBSE", "classLevel": "6", "subject": "Social Studies", "chapter": "Chapter 9"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["boardId"] and data["classId"] and data["subjectId"] and data["chapterId"]
    assert data["onboardingCompleted"] is True

    subjects = client.get("/api/curriculum/subjects", params={"userId": learner["id"]}).json()
    assert [s["name"] for s in subjects] == ["Social Studies"]
    chapters = client.get("/api/curriculum/chapters", params={"userId": learner["id"]}).json()
    assert [c["title"] for c in chapters] == ["Chapter 9"]


def test_onboarding_errors(client, learner):
    assert client.put("/api/auth/onboarding", json={}).status_code == 400
    assert client.put("/api/auth/onboarding", json={"userId": "missing"}).status_code == 404
    resp = client.put("/api/auth/onboarding", json={"userId": learner["id"], "dateOfBirth": "15-08-2013"})
    assert resp.status_code == 400
    resp = client.put("/api/auth/onboarding", json={"userId": learner["id"], "classLevel": ["6"], "chapter": {"n": 9}})
    assert resp.status_code == 400


# ------------------------------------------------------------------
# Progress
# ------------------------------------------------------------------
def test_progress_flow(client, learner):
    body = {"userId": learner["id"], "chapter": 3, "subject": "Science", "lessonTitle": "Plants", "isCorrect": True, "deltaScore": 10}
    resp = client.put("/api/auth/progress", json=body)
    assert resp.status_code == 200
    entry = resp.json()[0]
    assert entry["chapter"] == 3
    assert entry["stats"]["Plants"]["bestScore"] == 10

    progress = client.get(f"/api/auth/progress/{learner['id']}").json()
    assert len(progress) == 1

    summary = client.get(f"/api/auth/verify-storage/{learner['id']}").json()
    assert summary["totalPoints"] == 10
    assert summary["totalCorrect"] == 1

    module_progress = client.get(
        f"/api/auth/module-progress/{learner['id']}", params={"subject": "Maths", "chapter": "3"}
    ).json()
    assert module_progress == {"completedModules": []}


def test_progress_errors(client):
    assert client.put("/api/auth/progress", json={}).status_code == 400
    assert client.put("/api/auth/progress", json={"userId": "missing"}).status_code == 404
    assert client.get("/api/auth/progress/missing").status_code == 404


# ------------------------------------------------------------------
# Curriculum
# ------------------------------------------------------------------
def test_import_and_browse(client):
    resp = client.post("/api/curriculum/import", json=IMPORT_PAYLOAD)
    assert resp.status_code == 201
    data = resp.json()
    assert data["board"] == "CBSE"
    assert data["class"] == "6"
    assert data["unit"] == "Unit 1"
    assert data["importedItems"] == 4
    assert data["perLesson"][0]["items"] == 4

    assert [b["name"] for b in client.get("/api/curriculum/boards").json()] == ["CBSE"]
    assert [c["name"] for c in client.get("/api/curriculum/classes").json()] == ["6"]
    chapters = client.get(
        "/api/curriculum/chapters", params={"board": "CBSE", "subject": "Social Studies", "classTitle": "6"}
    ).json()
    units = client.get("/api/curriculum/units", params={"chapterId": chapters[0]["id"]}).json()
    modules = client.get("/api/curriculum/modules", params={"unitId": units[0]["id"]}).json()
    items = client.get("/api/curriculum/items", params={"moduleId": modules[0]["id"]}).json()

    assert [i["type"] for i in items] == ["statement", "multiple-choice", "fill-in-the-blank", "rearrange"]
    assert [i["order"] for i in items] == [1, 2, 3, 4]
    assert items[3]["words"] == items[3]["options"] == ["love", "We", "family", "our"]


def test_reimport_keeps_counts(client):
    client.post("/api/curriculum/import", json=IMPORT_PAYLOAD)
    data = client.post("/api/curriculum/import", json=IMPORT_PAYLOAD).json()
    assert data["perLesson"][0]["replaced"] is True

    items = client.get("/api/curriculum/items", params={"moduleId": data["perLesson"][0]["moduleId"]}).json()
    assert len(items) == 4


def test_import_errors(client):
    assert client.post("/api/curriculum/import", json={"lessons": {}}).status_code == 400
    resp = client.post("/api/curriculum/import", json={"lessons": [{"lesson_title": "L", "concepts": [None]}]})
    assert resp.status_code == 422
    assert resp.json()["detail"]["skipped"] == 1


def test_list_endpoints_require_ids(client):
    assert client.get("/api/curriculum/units").status_code == 400
    assert client.get("/api/curriculum/modules").status_code == 400
    assert client.get("/api/curriculum/items").status_code == 400


def test_set_item_image(client):
    data = client.post("/api/curriculum/import", json=IMPORT_PAYLOAD).json()
    item = client.get("/api/curriculum/items", params={"moduleId": data["perLesson"][0]["moduleId"]}).json()[0]

    resp = client.put(f"/api/curriculum/items/{item['id']}/image", json={"images": ["a.png"], "append": True})
    assert resp.status_code == 200
    resp = client.put(f"/api/curriculum/items/{item['id']}/image", json={"images": ["b.png"], "append": "true"})
    assert resp.json()["images"] == ["a.png", "b.png"]

    assert client.put(f"/api/curriculum/items/{item['id']}/image", json={}).status_code == 400
    assert client.put("/api/curriculum/items/nope/image", json={"imageUrl": "x.png"}).status_code == 404


def test_backfill_endpoints(client):
    payload = dict(IMPORT_PAYLOAD)
    del payload["unit_title"]
    client.post("/api/curriculum/import", json=payload)

    resp = client.post("/api/curriculum/backfill-units", json={})
    assert resp.json() == {"chaptersProcessed": 1, "unitsCreated": 1, "modulesAssigned": 1}

    resp = client.post(
        "/api/curriculum/backfill-subjects",
        json={"board_title": "CBSE", "class_title": "6", "subject_title": "Social Studies"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"board": "CBSE", "class": "6", "subject": "Social Studies", "updatedChapters": 0}


# ------------------------------------------------------------------
# Review
# ------------------------------------------------------------------
def test_incorrect_question_log(client, learner):
    body = {"userId": learner["id"], "questionId": "mod42_3"}
    assert client.post("/api/review/incorrect", json=body).status_code == 201
    second = client.post("/api/review/incorrect", json=dict(body, chapterId="ch1")).json()
    assert second["count"] == 2
    assert second["chapterId"] == "ch1"

    assert client.post("/api/review/backfill", json={}).json() == {"updated": 1, "scanned": 1}
    rows = client.get("/api/review/incorrect", params={"userId": learner["id"], "moduleId": "mod42"}).json()
    assert [r["questionId"] for r in rows] == ["mod42_3"]


def test_incorrect_question_errors(client):
    assert client.post("/api/review/incorrect", json={"userId": "x"}).status_code == 400
    assert client.post("/api/review/incorrect", json={"userId": "x", "questionId": "q"}).status_code == 404
    assert client.get("/api/review/incorrect").status_code == 400


# ------------------------------------------------------------------
# Upload
# ------------------------------------------------------------------
class FakeStore:
    configured = True

    def upload(self, data, filename=None, content_type=None, folder=None):
        folder = folder or "hoshiyaar"
        return StoredAsset(url=f"https://cdn.example/{folder}/{filename}", public_id=f"{folder}/{filename}")


@pytest.fixture
def fake_store(client):
    client.app.dependency_overrides[get_asset_store] = FakeStore
    yield
    client.app.dependency_overrides.clear()


def test_upload_without_storage_configured(client):
    resp = client.post("/api/upload/image", files={"file": ("a.png", b"data", "image/png")})
    assert resp.status_code == 500
    assert client.post("/api/upload/image").status_code == 400


def test_upload_images(client, fake_store):
    resp = client.post(
        "/api/upload/image",
        files={"file": ("a.png", b"data", "image/png")},
        data={"folder": "lessons"},
    )
    assert resp.json() == {"url": "https://cdn.example/lessons/a.png", "public_id": "lessons/a.png"}

    files = [("files", (f"{i}.png", b"data", "image/png")) for i in range(2)]
    resp = client.post("/api/upload/images", files=files)
    assert [img["public_id"] for img in resp.json()["images"]] == ["hoshiyaar/0.png", "hoshiyaar/1.png"]

    too_many = [("files", (f"{i}.png", b"data", "image/png")) for i in range(11)]
    assert client.post("/api/upload/images", files=too_many).status_code == 400
