import re

from werkzeug.datastructures import MultiDict

from content.blogs import build_blog_payload, validate_blog_form
from content.ordering import next_order, parse_order, sort_by_order
from content.products import product_ranges, validate_product_form
from content.testimonials import validate_testimonial_form

BLOG_FORM = {
    "title_en": "How to apply",
    "title_ms": "Cara memohon",
    "slug": "how-to-apply",
    "excerpt_en": "A short guide to applying",
    "excerpt_ms": "Panduan ringkas untuk memohon",
    "content_en": "Step one: gather your documents.",
    "content_ms": "Langkah satu: kumpul dokumen anda.",
    "category": "guides",
    "status": "draft",
    "tags": "loans, guide, ,tips",
    "seo_keywords": "personal loan",
}

FAQS = [
    {"_id": "f2", "question": {"en": "Q2", "ms": "S2"}, "answer": {"en": "A2", "ms": "J2"},
     "category": "fees", "isActive": True, "order": 2},
    {"_id": "f1", "question": {"en": "Q1", "ms": "S1"}, "answer": {"en": "A1", "ms": "J1"},
     "category": "general", "isActive": False, "order": 1},
]

TESTIMONIAL = {
    "_id": "t1", "name": "Lim Wei", "location": "Penang", "rating": 5,
    "content": {"en": "Fast approval", "ms": "Kelulusan pantas"}, "loanType": "Personal Loan",
    "occupation": "Engineer", "isActive": True, "isFeatured": True, "order": 3,
}

PRODUCT = {
    "_id": "p1",
    "name": {"en": "Personal Loan", "ms": "Pinjaman Peribadi"},
    "loanAmount": {"min": 5000, "max": 100000},
    "interestRate": {"min": 4.88, "max": 18, "type": "flat"},
    "tenure": {"min": 12, "max": 60},
    "isActive": True,
    "isFeatured": False,
}


# Blogs

def test_blog_validation_reports_short_fields():
    values, errors = validate_blog_form(MultiDict(dict(BLOG_FORM, title_ms="ab", content_en="too short")))
    assert errors == {
        "title_ms": "Title (MS) is required",
        "content_en": "Content (EN) is required",
    }
    assert values["title_ms"] == "ab"


def test_blog_validation_rejects_bad_image_url():
    _, errors = validate_blog_form(MultiDict(dict(BLOG_FORM, featured_image_url="not a url")))
    assert errors == {"featured_image_url": "Enter a valid URL"}


def test_blog_payload_splits_lists_and_skips_empty_image():
    values, errors = validate_blog_form(MultiDict(BLOG_FORM))
    assert errors == {}
    payload = build_blog_payload(values)
    assert payload["tags"] == ["loans", "guide", "tips"]
    assert payload["seo"]["keywords"] == ["personal loan"]
    assert payload["title"] == {"en": "How to apply", "ms": "Cara memohon"}
    assert "featuredImage" not in payload


def test_blog_image_alt_falls_back_to_title():
    values, _ = validate_blog_form(MultiDict(dict(
        BLOG_FORM, featured_image_url="https://cdn.example.com/a.jpg", featured_image_alt_en="Cover",
    )))
    image = build_blog_payload(values)["featuredImage"]
    assert image == {"url": "https://cdn.example.com/a.jpg", "alt": {"en": "Cover", "ms": "Cara memohon"}}


def test_create_blog(auth_client, fake_api):
    fake_api.add("POST", "/admin/blogs", json={"success": True, "data": {"_id": "b1"}})
    response = auth_client.post("/content/blogs/new", data=BLOG_FORM)
    assert response.status_code == 302
    assert fake_api.last("POST", "/admin/blogs").json["slug"] == "how-to-apply"


def test_invalid_blog_is_not_sent(auth_client, fake_api):
    response = auth_client.post("/content/blogs/new", data=dict(BLOG_FORM, slug=""))
    assert response.status_code == 400
    assert b"Slug is required" in response.data
    assert not fake_api.calls_to("POST", "/admin/blogs")


def test_missing_blog_shows_not_found(auth_client, fake_api):
    response = auth_client.get("/content/blogs/unknown")
    assert response.status_code == 404
    assert b"Blog post not found" in response.data


def test_blog_list_counts(auth_client, fake_api):
    fake_api.add("GET", "/admin/blogs", json={"success": True, "data": [
        {"_id": "b1", "title": {"en": "One"}, "status": "published", "slug": "one"},
        {"_id": "b2", "title": {"en": "Two"}, "status": "draft", "slug": "two"},
        {"_id": "b3", "title": {"en": "Three"}, "status": "published", "slug": "three"},
    ]})
    response = auth_client.get("/content/blogs")
    assert b"Published 2" in response.data
    assert b"Drafts 1" in response.data


# Ordering helpers

def test_ordering_helpers():
    assert [f["_id"] for f in sort_by_order(FAQS)] == ["f1", "f2"]
    assert next_order(FAQS) == 3
    assert next_order([]) == 1
    assert parse_order("4") == 4
    assert parse_order("0") is None
    assert parse_order("2.5") is None
    assert parse_order("abc") is None
    assert parse_order("") is None


# FAQs

def test_faq_list_is_sorted(auth_client, fake_api):
    fake_api.add("GET", "/admin/faqs", json={"success": True, "data": FAQS})
    response = auth_client.get("/content/faqs")
    body = response.data.decode()
    assert re.findall(r"<h3>(.*?)</h3>", body) == ["Q1", "Q2"]
    assert "Active 1" in body


def test_new_faq_defaults_to_next_order(auth_client, fake_api):
    fake_api.add("GET", "/admin/faqs", json={"success": True, "data": FAQS})
    response = auth_client.get("/content/faqs/new")
    assert b'name="order" min="1" value="3"' in response.data


def test_faq_requires_both_languages(auth_client, fake_api):
    response = auth_client.post("/content/faqs/new", data={
        "question_en": "Q", "question_ms": "", "answer_en": "A", "answer_ms": "J", "order": "1",
    })
    assert response.status_code == 400
    assert b"Please complete the question and answer in both languages." in response.data


def test_create_faq_payload(auth_client, fake_api):
    fake_api.add("POST", "/admin/faqs", json={"success": True})
    auth_client.post("/content/faqs/new", data={
        "question_en": " What fees? ", "question_ms": "Yuran?", "answer_en": "None", "answer_ms": "Tiada",
        "category": "fees", "is_active": "1", "order": "4",
    })
    assert fake_api.last("POST", "/admin/faqs").json == {
        "question": {"en": "What fees?", "ms": "Yuran?"},
        "answer": {"en": "None", "ms": "Tiada"},
        "category": "fees",
        "isActive": True,
        "order": 4,
    }


def test_faq_order_update_resends_full_record(auth_client, fake_api):
    fake_api.add("GET", "/admin/faqs", json={"success": True, "data": FAQS})
    fake_api.add("PUT", "/admin/faqs/f1", json={"success": True})
    auth_client.post("/content/faqs/f1/order", data={"order": "7"})
    assert fake_api.last("PUT", "/admin/faqs/f1").json == {
        "question": {"en": "Q1", "ms": "S1"},
        "answer": {"en": "A1", "ms": "J1"},
        "category": "general",
        "isActive": False,
        "order": 7,
    }


def test_invalid_faq_order_is_ignored(auth_client, fake_api):
    response = auth_client.post("/content/faqs/f1/order", data={"order": "-2"}, follow_redirects=True)
    assert b"Display order must be a positive number." in response.data
    assert not fake_api.calls_to("PUT", "/admin/faqs/f1")


# Testimonials

def test_testimonial_validation_messages():
    base = {"name": "Lim", "content_en": "Good", "content_ms": "Bagus", "rating": "5", "order": "1"}
    assert validate_testimonial_form(MultiDict(dict(base, name=" ")))[2] == "Customer name is required."
    assert validate_testimonial_form(MultiDict(dict(base, content_ms="")))[2] == \
        "Please provide the review content in both languages."
    assert validate_testimonial_form(MultiDict(dict(base, rating="6")))[2] == "Rating must be between 1 and 5 stars."
    assert validate_testimonial_form(MultiDict(dict(base, order="0")))[2] == "Display order must be a positive number."

    _, payload, error = validate_testimonial_form(MultiDict(dict(base, is_featured="on")))
    assert error is None
    assert payload["rating"] == 5
    assert payload["isFeatured"] is True
    assert payload["isActive"] is False


def test_testimonial_list_counts(auth_client, fake_api):
    fake_api.add("GET", "/admin/testimonials", json={"success": True, "data": [
        TESTIMONIAL, dict(TESTIMONIAL, _id="t2", isFeatured=False, isActive=False, order=1),
    ]})
    response = auth_client.get("/content/testimonials")
    assert b"Active 1" in response.data
    assert b"Featured 1" in response.data


def test_testimonial_order_update(auth_client, fake_api):
    fake_api.add("GET", "/admin/testimonials", json={"success": True, "data": [TESTIMONIAL]})
    fake_api.add("PUT", "/admin/testimonials/t1", json={"success": True})
    auth_client.post("/content/testimonials/t1/order", data={"order": "1"})
    sent = fake_api.last("PUT", "/admin/testimonials/t1").json
    assert sent["order"] == 1
    assert sent["name"] == "Lim Wei"
    assert sent["content"] == TESTIMONIAL["content"]


# Products

def test_product_ranges():
    assert product_ranges(PRODUCT) == {
        "amount": "RM 5,000 - 100,000",
        "rate": "4.88% - 18% p.a.",
        "tenure": "12 - 60 months",
    }


def test_product_min_must_not_exceed_max():
    form = MultiDict({
        "min_amount": "5000", "max_amount": "1000",
        "min_rate": "4", "max_rate": "8",
        "min_tenure": "12", "max_tenure": "60",
    })
    _, payload, error = validate_product_form(form, PRODUCT)
    assert payload is None
    assert error == "Loan amount minimum cannot be greater than the maximum."


def test_product_rejects_non_finite_numbers():
    form = MultiDict({
        "min_amount": "1000", "max_amount": "5000",
        "min_rate": "4", "max_rate": "inf",
        "min_tenure": "12", "max_tenure": "60",
    })
    _, payload, error = validate_product_form(form, PRODUCT)
    assert payload is None
    assert error == "Interest rate must be a valid number."


def test_edit_product_preserves_rate_type(auth_client, fake_api):
    fake_api.add("GET", "/admin/products", json={"success": True, "data": [PRODUCT]})
    fake_api.add("PUT", "/admin/products/p1", json={"success": True})
    response = auth_client.post("/content/products/p1/edit", data={
        "min_amount": "3000", "max_amount": "150000",
        "min_rate": "3.5", "max_rate": "12.25",
        "min_tenure": "6", "max_tenure": "84",
        "is_active": "1",
    })
    assert response.status_code == 302
    assert fake_api.last("PUT", "/admin/products/p1").json == {
        "loanAmount": {"min": 3000, "max": 150000},
        "interestRate": {"min": 3.5, "max": 12.25, "type": "flat"},
        "tenure": {"min": 6, "max": 84},
        "isActive": True,
        "isFeatured": False,
    }


def test_product_list(auth_client, fake_api):
    fake_api.add("GET", "/admin/products", json={"success": True, "data": [PRODUCT]})
    response = auth_client.get("/content/products")
    assert b"RM 5,000 - 100,000" in response.data
    assert b"Active 1" in response.data
