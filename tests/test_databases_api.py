# File: /tests/test_databases_api.py | Title: Database endpoints (create, list, read, delete, pickers, render)
COLUMNS = [
    {"id": "c_name", "name": "Name", "type": "TEXT"},
    {"id": "c_stage", "name": "Stage", "type": "SELECT", "options": ["Open", "Done"]},
    {"id": "c_score", "name": "Score", "type": "NUMBER"},
]


def test_create_with_explicit_columns(client, headers):
    r = client.post("/databases", json={"name": "  Deals ", "columns": COLUMNS}, headers=headers)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["name"] == "Deals"
    assert body["organization_id"] == "org-1"
    assert body["created_by_id"] == "user-1"
    assert [c["id"] for c in body["columns"]] == ["c_name", "c_stage", "c_score"]
    assert body["columns"][1]["options"] == ["Open", "Done"]


def test_create_generates_ids_and_status_option_ids(client, headers):
    payload = {
        "name": "Work",
        "columns": [
            {"name": "Title", "type": "TEXT"},
            {"name": "State", "type": "STATUS", "status_options": [{"name": "Todo"}, {"name": "Done", "color": "green"}]},
        ],
    }
    r = client.post("/databases", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    title, state = r.json()["columns"]
    assert title["id"].startswith("col_")
    assert all(o["id"].startswith("opt_") for o in state["status_options"])


def test_create_from_template_and_blank_default(make_database):
    dd = make_database(template_id="dd-tracker")
    assert [c["id"] for c in dd["columns"]][:3] == ["task", "category", "status"]

    blank = make_database()
    assert [(c["id"], c["name"], c["type"]) for c in blank["columns"]] == [("col_title", "Title", "TEXT")]


def test_create_rejects_bad_schemas(client, headers):
    r = client.post("/databases", json={"name": "X", "template_id": "nope"}, headers=headers)
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "INVALID_COLUMN_CONFIG"

    r = client.post("/databases", json={"name": "X", "columns": []}, headers=headers)
    assert r.status_code == 422

    dupes = [{"id": "a", "name": "A", "type": "TEXT"}, {"id": "a", "name": "B", "type": "TEXT"}]
    r = client.post("/databases", json={"name": "X", "columns": dupes}, headers=headers)
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "INVALID_COLUMN_CONFIG"

    rel = [{"name": "Link", "type": "RELATION"}]
    r = client.post("/databases", json={"name": "X", "columns": rel}, headers=headers)
    assert r.status_code == 422
    assert "relation" in r.json()["error"]["message"]


def test_list_paginates_and_searches(client, headers, make_database, make_entry):
    deals = make_database(COLUMNS, name="Deals")
    make_database(COLUMNS, name="Contacts")
    make_entry(deals["id"], {"c_name": "Acme"})

    r = client.get("/databases", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 2
    assert body["total_pages"] == 1
    counts = {i["name"]: (i["column_count"], i["entry_count"]) for i in body["items"]}
    assert counts == {"Deals": (3, 1), "Contacts": (3, 0)}

    r = client.get("/databases", params={"search": "DEA"}, headers=headers)
    assert [i["name"] for i in r.json()["items"]] == ["Deals"]

    r = client.get("/databases", params={"page": 2, "page_size": 1}, headers=headers)
    assert r.json()["page"] == 2
    assert len(r.json()["items"]) == 1
    assert r.json()["total_pages"] == 2


def test_read_includes_entries_with_values(client, headers, make_database, make_entry):
    db = make_database(COLUMNS)
    make_entry(db["id"], {"c_name": "Acme", "c_score": "42"})
    r = client.get(f"/databases/{db['id']}", headers=headers)
    assert r.status_code == 200
    (entry,) = r.json()["entries"]
    assert entry["properties"] == {"c_name": "Acme", "c_score": 42.0}
    assert entry["values"] == {"c_name": "Acme", "c_stage": None, "c_score": 42.0}


def test_other_organizations_see_not_found(client, auth, make_database):
    db = make_database(COLUMNS)
    other = auth(org="org-2")
    for method, path in [
        ("get", f"/databases/{db['id']}"),
        ("patch", f"/databases/{db['id']}"),
        ("get", f"/databases/{db['id']}/search"),
    ]:
        kwargs = {"json": {"name": "Mine"}} if method == "patch" else {}
        r = getattr(client, method)(path, headers=other, **kwargs)
        assert r.status_code == 404, path
        assert r.json()["error"]["code"] == "NOT_FOUND"
    assert client.get("/databases", headers=other).json()["total"] == 0


def test_role_checks(client, auth, make_database):
    r = client.post("/databases", json={"name": "X"}, headers=auth(role="Guest"))
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "FORBIDDEN"

    r = client.get("/databases")
    assert r.status_code == 401

    db = make_database(COLUMNS)
    assert client.get(f"/databases/{db['id']}", headers=auth(role="Guest")).status_code == 200
    assert client.delete(f"/databases/{db['id']}", headers=auth(role="Member")).status_code == 403


def test_update_name_and_clear_description(client, headers, make_database):
    db = make_database(COLUMNS, description="old")
    r = client.patch(f"/databases/{db['id']}", json={"name": "Renamed"}, headers=headers)
    assert r.json()["name"] == "Renamed"
    assert r.json()["description"] == "old"

    r = client.patch(f"/databases/{db['id']}", json={"description": None}, headers=headers)
    assert r.json()["description"] is None


def test_admin_delete_removes_entries(client, auth, headers, make_database, make_entry):
    db = make_database(COLUMNS)
    entry = make_entry(db["id"], {"c_name": "Acme"})
    r = client.delete(f"/databases/{db['id']}", headers=auth(role="Admin"))
    assert r.status_code == 200
    assert r.json() == {"detail": "Database deleted"}
    assert client.get(f"/databases/{db['id']}", headers=headers).status_code == 404
    assert client.get(f"/entries/{entry['id']}", headers=headers).status_code == 404


def test_relation_targets(client, headers, make_database):
    a = make_database(COLUMNS, name="Alpha")
    b = make_database(COLUMNS, name="Beta")
    r = client.get("/databases/relation-targets", params={"exclude_id": a["id"]}, headers=headers)
    assert [d["id"] for d in r.json()] == [b["id"]]

    r = client.get("/databases/relation-targets", params={"scope_id": "org-2"}, headers=headers)
    assert r.json() == []


def test_templates_are_listed(client, headers):
    r = client.get("/databases/templates", headers=headers)
    assert r.status_code == 200
    ids = [t["id"] for t in r.json()]
    assert {"dd-tracker", "contact-list", "document-log", "risk-register", "blank"} <= set(ids)


def test_search_and_titles(client, headers, make_database, make_entry):
    db = make_database(COLUMNS)
    acme = make_entry(db["id"], {"c_name": "Acme Corp"})
    beta = make_entry(db["id"], {"c_name": "Beta"})
    blank = make_entry(db["id"], {"c_score": 1})

    r = client.get(f"/databases/{db['id']}/search", params={"q": "acme"}, headers=headers)
    assert r.json() == [{"id": acme["id"], "title": "Acme Corp"}]

    r = client.get(f"/databases/{db['id']}/search", params={"limit": 2}, headers=headers)
    assert [e["id"] for e in r.json()] == [acme["id"], beta["id"]]

    r = client.post(
        f"/databases/{db['id']}/titles",
        json={"entry_ids": [blank["id"], "missing", acme["id"]]},
        headers=headers,
    )
    assert r.json() == [
        {"id": blank["id"], "title": "Untitled"},
        {"id": acme["id"], "title": "Acme Corp"},
    ]


def test_render_descriptor(client, headers, make_database, make_entry):
    db = make_database(COLUMNS)
    make_entry(db["id"], {"c_name": "a", "c_stage": "Open"})
    make_entry(db["id"], {"c_name": "b", "c_stage": "Done"})
    make_entry(db["id"], {"c_name": "c"})

    r = client.post(f"/databases/{db['id']}/render", json={"view_type": "kanban"}, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["supported"] is True
    assert body["group_by"] == "c_stage"
    assert [(b["label"], len(b["rows"])) for b in body["buckets"]] == [
        ("Open", 1), ("Done", 1), ("Uncategorized", 1),
    ]

    r = client.post(
        f"/databases/{db['id']}/render",
        json={"view_type": "table", "sort_by": {"column_id": "c_name", "direction": "desc"},
              "hidden_columns": ["c_score"]},
        headers=headers,
    )
    body = r.json()
    assert body["total"] == 3
    assert [c["id"] for c in body["columns"]] == ["c_name", "c_stage"]
    assert [row["values"]["c_name"] for row in body["rows"]] == ["c", "b", "a"]
