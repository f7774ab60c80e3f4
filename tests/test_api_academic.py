"""
Academic API Tests

Colleges, departments and role profiles through HTTP, including the RBAC
matrix for each resource and the admin account-management endpoints.
"""

import pytest

from tests.conftest import API, login, login_headers, register


# ============================================================================
# Helpers
# ============================================================================

def create_college(client, headers, name="Engineering College"):
    response = client.post(f"{API}/colleges", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_department(client, headers, college_id, name="Computer Science"):
    response = client.post(
        f"{API}/departments",
        json={"name": name, "collegeId": college_id},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def student_body(email="stu@example.com", roll_number="CS-001", **extra):
    return {
        "email": email,
        "password": "secret123",
        "name": "Stu Dent",
        "roll_number": roll_number,
        "year": 2,
        **extra,
    }


def create_student(client, headers, **kwargs):
    response = client.post(f"{API}/students", json=student_body(**kwargs), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_faculty(client, headers, email="prof@example.com", employee_id="EMP-1", **extra):
    response = client.post(
        f"{API}/faculty",
        json={
            "email": email,
            "password": "secret123",
            "name": "Pro Fessor",
            "employee_id": employee_id,
            **extra,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def faculty_headers(client, admin_headers):
    create_faculty(client, admin_headers)
    return login_headers(client, "prof@example.com")


# ============================================================================
# Colleges & departments
# ============================================================================

class TestColleges:

    def test_admin_creates_and_anyone_reads(self, client, admin_headers):
        college = create_college(client, admin_headers)
        register(client, "alice@example.com")
        student_headers = login_headers(client, "alice@example.com")

        listed = client.get(f"{API}/colleges", headers=student_headers)
        fetched = client.get(f"{API}/colleges/{college['id']}", headers=student_headers)

        assert listed.status_code == 200
        assert listed.json()["pagination"]["total"] == 1
        assert fetched.json()["data"]["name"] == "Engineering College"

    def test_student_cannot_create(self, client):
        register(client, "alice@example.com")
        headers = login_headers(client, "alice@example.com")

        response = client.post(f"{API}/colleges", json={"name": "Nope College"}, headers=headers)

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Required roles: ADMIN. Your role: STUDENT"

    def test_anonymous_cannot_read(self, client):
        assert client.get(f"{API}/colleges").status_code == 401

    def test_duplicate_name(self, client, admin_headers):
        create_college(client, admin_headers)

        response = client.post(f"{API}/colleges", json={"name": "Engineering College"}, headers=admin_headers)

        assert response.status_code == 409

    def test_college_with_departments_cannot_be_deleted(self, client, admin_headers):
        college = create_college(client, admin_headers)
        department = create_department(client, admin_headers, college["id"])

        blocked = client.delete(f"{API}/colleges/{college['id']}", headers=admin_headers)
        client.delete(f"{API}/departments/{department['id']}", headers=admin_headers)
        allowed = client.delete(f"{API}/colleges/{college['id']}", headers=admin_headers)

        assert blocked.status_code == 409
        assert allowed.status_code == 200
        assert client.get(f"{API}/colleges/{college['id']}", headers=admin_headers).status_code == 404


class TestDepartments:

    def test_department_requires_existing_college(self, client, admin_headers):
        response = client.post(
            f"{API}/departments",
            json={"name": "Physics", "college_id": "missing"},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_name_unique_within_college_only(self, client, admin_headers):
        first = create_college(client, admin_headers, "First College")
        second = create_college(client, admin_headers, "Second College")
        create_department(client, admin_headers, first["id"], "Physics")

        same_college = client.post(
            f"{API}/departments",
            json={"name": "Physics", "collegeId": first["id"]},
            headers=admin_headers,
        )
        other_college = client.post(
            f"{API}/departments",
            json={"name": "Physics", "collegeId": second["id"]},
            headers=admin_headers,
        )

        assert same_college.status_code == 409
        assert other_college.status_code == 201

    def test_deleting_department_detaches_students(self, client, admin_headers):
        college = create_college(client, admin_headers)
        department = create_department(client, admin_headers, college["id"])
        student = create_student(client, admin_headers, department_id=department["id"])

        client.delete(f"{API}/departments/{department['id']}", headers=admin_headers)
        fetched = client.get(f"{API}/students/{student['user_id']}", headers=admin_headers)

        assert fetched.status_code == 200
        assert fetched.json()["data"]["department_id"] is None


# ============================================================================
# Profiles
# ============================================================================

class TestStudents:

    def test_admin_creates_student_who_can_log_in(self, client, admin_headers):
        student = create_student(client, admin_headers)

        assert student["roll_number"] == "CS-001"
        assert student["user"]["role"] == "STUDENT"
        assert "password_hash" not in student["user"]
        assert login(client, "stu@example.com").status_code == 200

    def test_student_access_matrix(self, client, admin_headers):
        student = create_student(client, admin_headers)
        headers = login_headers(client, "stu@example.com")

        own = client.get(f"{API}/students/{student['user_id']}", headers=headers)
        listing = client.get(f"{API}/students", headers=headers)
        removal = client.delete(f"{API}/students/{student['user_id']}", headers=headers)

        assert own.status_code == 200
        assert listing.status_code == 403
        assert listing.json()["message"] == (
            "Access denied. Required roles: FACULTY, ADMIN. Your role: STUDENT"
        )
        assert removal.status_code == 403

    def test_faculty_lists_and_updates_students(self, client, admin_headers, faculty_headers):
        student = create_student(client, admin_headers)

        listing = client.get(f"{API}/students", params={"year": 2}, headers=faculty_headers)
        updated = client.put(
            f"{API}/students/{student['user_id']}",
            json={"year": 3, "name": "Stu Updated"},
            headers=faculty_headers,
        )

        assert listing.json()["pagination"]["total"] == 1
        assert updated.status_code == 200
        assert updated.json()["data"]["year"] == 3
        assert updated.json()["data"]["user"]["name"] == "Stu Updated"

    def test_faculty_cannot_delete_students(self, client, admin_headers, faculty_headers):
        student = create_student(client, admin_headers)

        response = client.delete(f"{API}/students/{student['user_id']}", headers=faculty_headers)

        assert response.status_code == 403

    def test_duplicate_roll_number_and_email(self, client, admin_headers):
        create_student(client, admin_headers)

        same_roll = client.post(
            f"{API}/students", json=student_body(email="other@example.com"), headers=admin_headers
        )
        same_email = client.post(
            f"{API}/students", json=student_body(roll_number="CS-002"), headers=admin_headers
        )

        assert same_roll.status_code == 409
        assert same_email.status_code == 409
        assert login(client, "other@example.com").status_code == 401

    def test_unknown_department(self, client, admin_headers):
        response = client.post(
            f"{API}/students", json=student_body(department_id="missing"), headers=admin_headers
        )

        assert response.status_code == 400

    def test_deleted_student_loses_access(self, client, admin_headers):
        student = create_student(client, admin_headers)

        removal = client.delete(f"{API}/students/{student['user_id']}", headers=admin_headers)

        assert removal.status_code == 200
        assert login(client, "stu@example.com").status_code == 401
        assert client.get(f"{API}/students/{student['user_id']}", headers=admin_headers).status_code == 404

    def test_recreating_deleted_student_revives_account(self, client, admin_headers):
        student = create_student(client, admin_headers)
        client.delete(f"{API}/students/{student['user_id']}", headers=admin_headers)

        revived = create_student(client, admin_headers)

        assert revived["user_id"] == student["user_id"]
        assert revived["roll_number"] == "CS-001"
        assert login(client, "stu@example.com").status_code == 200

    def test_dormant_roll_number_still_blocks_other_students(self, client, admin_headers):
        student = create_student(client, admin_headers)
        client.delete(f"{API}/students/{student['user_id']}", headers=admin_headers)

        response = client.post(
            f"{API}/students", json=student_body(email="new@example.com"), headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Roll number already exists"


class TestFacultyAndAdmins:

    def test_only_admin_creates_faculty(self, client, admin_headers, faculty_headers):
        response = client.post(
            f"{API}/faculty",
            json={
                "email": "second@example.com",
                "password": "secret123",
                "name": "Second Prof",
                "employee_id": "EMP-2",
            },
            headers=faculty_headers,
        )

        assert response.status_code == 403

    def test_created_admin_gets_admin_token(self, client, admin_headers):
        response = client.post(
            f"{API}/admins",
            json={"email": "boss@example.com", "password": "secret123", "name": "The Boss"},
            headers=admin_headers,
        )
        headers = login_headers(client, "boss@example.com")

        assert response.status_code == 201
        assert response.json()["data"]["user"]["role"] == "ADMIN"
        assert client.get(f"{API}/admins", headers=headers).status_code == 200

    def test_dashboard_stats(self, client, admin_headers, faculty_headers):
        college = create_college(client, admin_headers)
        create_department(client, admin_headers, college["id"])
        create_student(client, admin_headers)
        register(client, "walkin@example.com")

        response = client.get(f"{API}/admins/dashboard/stats", headers=admin_headers)
        denied = client.get(f"{API}/admins/dashboard/stats", headers=faculty_headers)

        stats = response.json()["data"]
        assert stats["total_users"] == 3
        assert stats["total_students"] == 1
        assert stats["total_faculty"] == 1
        assert stats["total_colleges"] == 1
        assert stats["total_departments"] == 1
        assert denied.status_code == 403


# ============================================================================
# Account management
# ============================================================================

class TestUserAdministration:

    def test_delete_and_restore(self, client, admin_headers):
        user_id = register(client, "alice@example.com").json()["user"]["id"]

        deleted = client.delete(f"{API}/user/{user_id}", headers=admin_headers)
        blocked_login = login(client, "alice@example.com")
        restored = client.post(f"{API}/user/{user_id}/restore", headers=admin_headers)
        restored_again = client.post(f"{API}/user/{user_id}/restore", headers=admin_headers)

        assert deleted.json()["user"]["is_deleted"] is True
        assert blocked_login.status_code == 401
        assert restored.json()["user"]["is_deleted"] is False
        assert restored_again.status_code == 400
        assert login(client, "alice@example.com").status_code == 200

    def test_unknown_user(self, client, admin_headers):
        assert client.delete(f"{API}/user/missing", headers=admin_headers).status_code == 404
        assert client.post(f"{API}/user/missing/restore", headers=admin_headers).status_code == 404

    def test_list_users(self, client, admin_headers):
        for i in range(3):
            register(client, f"user{i}@example.com")

        response = client.get(f"{API}/user", params={"limit": 2}, headers=admin_headers)

        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {
            "page": 1,
            "limit": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": True,
            "has_prev": False,
        }

    def test_students_cannot_manage_accounts(self, client):
        user_id = register(client, "alice@example.com").json()["user"]["id"]
        headers = login_headers(client, "alice@example.com")

        assert client.get(f"{API}/user", headers=headers).status_code == 403
        assert client.delete(f"{API}/user/{user_id}", headers=headers).status_code == 403
