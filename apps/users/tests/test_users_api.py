"""API tests for the caller's profile and admin account management."""

from __future__ import annotations

from io import BytesIO

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from PIL import Image
from rest_framework import status
from rest_framework.test import APITestCase

from apps.core.tests.helpers import PASSWORD, authenticate, make_user
from apps.users.models import User


def png_upload(name: str = "me.png") -> SimpleUploadedFile:
    buffer = BytesIO()
    Image.new("RGB", (640, 480), "steelblue").save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


class MeTests(APITestCase):
    def setUp(self) -> None:
        self.user = make_user(email="me@example.com", name="Leo Gillespie")
        authenticate(self.client, self.user)

    def test_me(self) -> None:
        response = self.client.get(reverse("users:me"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "success")
        self.assertEqual(response.data["data"]["data"]["name"], "Leo Gillespie")

    def test_update_me(self) -> None:
        response = self.client.patch(
            reverse("users:update-me"),
            {"name": "Leo J. Gillespie", "email": "LEO@example.com", "role": "admin"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["data"]["user"]["email"], "leo@example.com")

        self.user.refresh_from_db()
        self.assertEqual(self.user.name, "Leo J. Gillespie")
        self.assertEqual(self.user.role, User.RoleChoices.USER)

    def test_update_me_rejects_password_fields(self) -> None:
        response = self.client.patch(
            reverse("users:update-me"),
            {"password": "newpass123", "password_confirm": "newpass123"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data["message"],
            "This route is not for password updates. Please use /update-my-password.",
        )

    def test_update_me_email_taken(self) -> None:
        make_user(email="taken@example.com")
        response = self.client.patch(reverse("users:update-me"), {"email": "taken@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Duplicate field value", response.data["message"])

    def test_photo_upload_is_resized(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.patch(
                reverse("users:update-me"),
                {"name": "Leo Gillespie", "photo": png_upload()},
                format="multipart",
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.user.refresh_from_db()
        self.assertTrue(self.user.photo.startswith(f"user-{self.user.pk}-"))
        self.assertTrue(self.user.photo.endswith(".jpeg"))

        path = f"img/users/{self.user.photo}"
        self.assertTrue(default_storage.exists(path))
        with default_storage.open(path, "rb") as stored:
            self.assertEqual(Image.open(stored).size, (500, 500))

    def _upload_photo(self):
        with self.captureOnCommitCallbacks(execute=True):
            return self.client.patch(reverse("users:update-me"), {"photo": png_upload()}, format="multipart")

    def test_new_photo_replaces_the_old_file(self) -> None:
        old_path = default_storage.save("img/users/user-old.jpeg", ContentFile(b"old"))
        self.user.photo = old_path.rsplit("/", 1)[-1]
        self.user.save(update_fields=["photo"])

        response = self._upload_photo()

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(default_storage.exists(old_path))
        self.user.refresh_from_db()
        self.assertTrue(default_storage.exists(f"img/users/{self.user.photo}"))

    def test_default_photo_is_never_deleted(self) -> None:
        default_path = "img/users/default.jpg"
        if not default_storage.exists(default_path):
            default_storage.save(default_path, ContentFile(b"default"))
        self.assertEqual(self.user.photo, "default.jpg")

        response = self._upload_photo()

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(default_storage.exists(default_path))

    def test_non_image_upload_is_rejected(self) -> None:
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        response = self.client.patch(reverse("users:update-me"), {"photo": upload}, format="multipart")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Not an image! Please upload only images.")

    def test_delete_me_deactivates(self) -> None:
        response = self.client.delete(reverse("users:delete-me"))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)

        self.client.credentials()
        login = self.client.post(
            reverse("users:login"), {"email": "me@example.com", "password": PASSWORD}, format="json"
        )
        self.assertEqual(login.status_code, status.HTTP_401_UNAUTHORIZED)


class AdminUserTests(APITestCase):
    def setUp(self) -> None:
        self.admin = make_user(User.RoleChoices.ADMIN)
        self.guide = make_user(User.RoleChoices.GUIDE)
        self.user = make_user()
        authenticate(self.client, self.admin)

    def test_list_users(self) -> None:
        inactive = make_user()
        inactive.deactivate()

        response = self.client.get(reverse("users:user-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["results"], 3)
        ids = {item["id"] for item in response.data["data"]["data"]}
        self.assertNotIn(inactive.pk, ids)

    def test_filter_by_role(self) -> None:
        response = self.client.get(reverse("users:user-list"), {"role": "guide"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data["data"]["data"]], [self.guide.pk])

    def test_update_role(self) -> None:
        response = self.client.patch(
            reverse("users:user-detail", args=[self.user.pk]), {"role": "lead-guide"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["data"]["data"]["role"], "lead-guide")

    def test_delete_user(self) -> None:
        response = self.client.delete(reverse("users:user-detail", args=[self.user.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.user.pk).exists())

    def test_create_points_to_signup(self) -> None:
        response = self.client.post(reverse("users:user-list"), {"email": "x@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["message"], "This route is not defined! Please use /signup instead")

    def test_non_admin_is_forbidden(self) -> None:
        authenticate(self.client, self.user)
        response = self.client.get(reverse("users:user-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            response.data,
            {"status": "fail", "message": "You do not have permission to perform this action"},
        )
