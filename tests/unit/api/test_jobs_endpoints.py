"""
Tests for job posting endpoints.
"""

import pytest

JOBS = "/api/v1/jobs"


@pytest.fixture
def employer(make_user):
    return make_user("employer")


class TestCreateJob:
    """Test job creation."""

    def test_create(self, client, employer, create_job):
        job = create_job()

        assert job["title"] == "Backend Engineer"
        assert job["jobStatus"] == "pending"
        assert job["jobType"] == "full-time"
        assert job["jobLocation"] == {"country": "Canada", "city": "Toronto"}
        assert job["isClosed"] is False
        assert job["applicants"] == []
        assert str(job["createdBy"]) == employer["userId"]

    def test_missing_fields(self, client, employer):
        response = client.post(JOBS, json={"title": "Only a title"})
        assert response.status_code == 400
        assert response.json() == {"msg": "Please provide all required job fields"}

    def test_talent_cannot_create(self, client, make_user):
        make_user("talent")
        response = client.post(JOBS, json={"title": "x"})
        assert response.status_code == 401
        assert response.json() == {"msg": "Unauthorized to access this route"}

    def test_requires_session(self, client):
        assert client.post(JOBS, json={}).status_code == 401

    def test_invalid_job_type(self, client, employer):
        response = client.post(
            JOBS,
            json={
                "title": "t",
                "company": "c",
                "position": "p",
                "description": "d",
                "jobType": "gig",
                "jobLocation": {"country": "Canada", "city": "Toronto"},
            },
        )
        assert response.status_code == 400


class TestListJobs:
    """Test filtering, sorting and pagination."""

    @pytest.fixture
    def jobs(self, employer, create_job):
        return [
            create_job(position="Backend Engineer", company="Acme"),
            create_job(position="Data Analyst", company="Globex", jobType="part-time"),
            create_job(position="Frontend Engineer", company="Initech", jobStatus="interview"),
        ]

    def test_default_newest_first(self, client, jobs):
        body = client.get(JOBS).json()

        assert body["totalJobs"] == 3
        assert body["numOfPages"] == 1
        assert body["currentPage"] == 1
        assert [j["id"] for j in body["jobs"]] == [j["id"] for j in reversed(jobs)]

    def test_search_is_case_insensitive(self, client, jobs):
        body = client.get(JOBS, params={"search": "ENGINEER"}).json()
        assert body["totalJobs"] == 2

    def test_search_matches_company(self, client, jobs):
        body = client.get(JOBS, params={"search": "glob"}).json()
        assert [j["position"] for j in body["jobs"]] == ["Data Analyst"]

    def test_status_filter(self, client, jobs):
        body = client.get(JOBS, params={"status": "interview"}).json()
        assert [j["position"] for j in body["jobs"]] == ["Frontend Engineer"]

    def test_all_means_no_filter(self, client, jobs):
        body = client.get(JOBS, params={"status": "all", "jobType": "all"}).json()
        assert body["totalJobs"] == 3

    def test_job_type_filter(self, client, jobs):
        body = client.get(JOBS, params={"jobType": "part-time"}).json()
        assert body["totalJobs"] == 1

    def test_sort_a_z_by_position(self, client, jobs):
        body = client.get(JOBS, params={"sort": "a-z"}).json()
        assert [j["position"] for j in body["jobs"]] == [
            "Backend Engineer",
            "Data Analyst",
            "Frontend Engineer",
        ]

    def test_sort_z_a(self, client, jobs):
        body = client.get(JOBS, params={"sort": "z-a"}).json()
        assert body["jobs"][0]["position"] == "Frontend Engineer"

    def test_pagination(self, client, jobs):
        body = client.get(JOBS, params={"limit": 2, "page": 2}).json()
        assert body["totalJobs"] == 3
        assert body["numOfPages"] == 2
        assert body["currentPage"] == 2
        assert len(body["jobs"]) == 1

    def test_owner_scoped(self, client, jobs, make_user):
        make_user("employer")
        body = client.get(JOBS).json()
        assert body["totalJobs"] == 0
        assert body["numOfPages"] == 0

    def test_unknown_status_filter(self, client, jobs):
        response = client.get(JOBS, params={"status": "archived"})
        assert response.status_code == 400


class TestSingleJob:
    """Test get, update, delete and close."""

    def test_get(self, client, employer, create_job):
        job = create_job()
        response = client.get(f"{JOBS}/{job['id']}")
        assert response.status_code == 200
        assert response.json()["job"]["id"] == job["id"]

    def test_get_missing(self, client, employer):
        response = client.get(f"{JOBS}/999")
        assert response.status_code == 404
        assert response.json() == {"msg": "No job with id 999"}

    def test_other_employer_denied(self, client, employer, create_job, make_user):
        job = create_job()
        make_user("employer")
        response = client.get(f"{JOBS}/{job['id']}")
        assert response.status_code == 401
        assert response.json() == {"msg": "Not authorized to access this route"}

    def test_update(self, client, employer, create_job):
        job = create_job()
        response = client.patch(
            f"{JOBS}/{job['id']}",
            json={"position": "Staff Engineer", "jobLocation": {"city": "Ottawa"}},
        )
        assert response.status_code == 200
        updated = response.json()["job"]
        assert updated["position"] == "Staff Engineer"
        assert updated["jobLocation"] == {"country": "Canada", "city": "Ottawa"}

    def test_update_ignores_ownership_fields(self, client, employer, create_job):
        job = create_job()
        response = client.patch(f"{JOBS}/{job['id']}", json={"createdBy": 999, "id": 42})
        updated = response.json()["job"]
        assert updated["id"] == job["id"]
        assert updated["createdBy"] == job["createdBy"]

    def test_delete(self, client, employer, create_job):
        job = create_job()
        response = client.delete(f"{JOBS}/{job['id']}")
        assert response.status_code == 200
        assert response.json() == {"msg": "Success! Job removed"}
        assert client.get(f"{JOBS}/{job['id']}").status_code == 404

    def test_delete_missing_before_ownership(self, client, employer):
        assert client.delete(f"{JOBS}/12345").status_code == 404

    def test_close_is_idempotent(self, client, employer, create_job):
        job = create_job()
        first = client.patch(f"{JOBS}/{job['id']}/close")
        second = client.patch(f"{JOBS}/{job['id']}/close")

        assert first.status_code == second.status_code == 200
        assert first.json()["msg"] == "Job closed for applications"
        assert second.json()["job"]["isClosed"] is True

    def test_close_by_other_employer(self, client, employer, create_job, make_user):
        job = create_job()
        make_user("employer")
        assert client.patch(f"{JOBS}/{job['id']}/close").status_code == 401
