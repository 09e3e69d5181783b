import uuid

from django.db import models


class Master(models.Model):
    name = models.CharField(max_length=100)

    class Meta:
        app_label = "test_app"
        ordering = ["id"]

    def __str__(self):
        return self.name


class Band(models.Model):
    name = models.CharField(max_length=100)
    active = models.BooleanField(default=True)

    class Meta:
        app_label = "test_app"
        ordering = ["id"]

    def __str__(self):
        return self.name


class Tag(models.Model):
    title = models.CharField(max_length=50)

    class Meta:
        app_label = "test_app"
        ordering = ["id"]

    def __str__(self):
        return f"#{self.title}"


class User(models.Model):
    STATUS_CHOICES = [("active", "Active"), ("retired", "Retired")]

    name = models.CharField(max_length=100)
    title = models.CharField(max_length=50, null=True, blank=True)
    nickname = models.CharField(max_length=50, blank=True, default="")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    email = models.CharField(max_length=100, blank=True, default="")
    master = models.ForeignKey(
        Master, on_delete=models.CASCADE, null=True, blank=True, related_name="users"
    )
    bands = models.ManyToManyField(
        Band, through="UserBand", blank=True, related_name="users"
    )
    tags = models.ManyToManyField(Tag, blank=True, related_name="users")

    class Meta:
        app_label = "test_app"
        ordering = ["id"]

    def __str__(self):
        return self.name

    @property
    def shout(self):
        return self.name.upper()

    @property
    def alias(self):
        return self.nickname

    @alias.setter
    def alias(self, value):
        self.nickname = (value or "").lower()

    def greeting(self):
        return f"Hello {self.name}"

    def rename(self, value):
        self.name = value.strip().title()


class UserBand(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE)
    band = models.ForeignKey(Band, on_delete=models.CASCADE)
    role = models.CharField(max_length=20, default="member")

    class Meta:
        app_label = "test_app"


class Profile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")
    bio = models.CharField(max_length=200, blank=True, default="")
    website = models.CharField(max_length=200, blank=True, default="")

    class Meta:
        app_label = "test_app"


class Address(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="addresses")
    street = models.CharField(max_length=100)
    city = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        app_label = "test_app"
        ordering = ["id"]


class Note(models.Model):
    user = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="notes"
    )
    text = models.CharField(max_length=200)

    class Meta:
        app_label = "test_app"
        ordering = ["id"]

    def __str__(self):
        return self.text


class Category(models.Model):
    name = models.CharField(max_length=100)
    parent = models.ForeignKey(
        "self", on_delete=models.CASCADE, null=True, blank=True, related_name="children"
    )

    class Meta:
        app_label = "test_app"
        ordering = ["id"]


class Badge(models.Model):
    user = models.OneToOneField(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="badge"
    )
    label = models.CharField(max_length=50)

    class Meta:
        app_label = "test_app"
        ordering = ["id"]


class Token(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    label = models.CharField(max_length=50)

    class Meta:
        app_label = "test_app"
