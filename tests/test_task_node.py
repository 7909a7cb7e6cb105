from tasks import TaskNode


def collect(node: TaskNode):
    visited = []
    node.walk(lambda n, parent, depth: visited.append((n.name, parent.name if parent else None, depth)))
    return visited


def test_new_node_is_leaf():
    assert TaskNode.create_root().is_leaf()


def test_add_child_returns_new_node_and_parent_stops_being_leaf():
    root = TaskNode.create_root()

    child = root.add_child("db", None, 5)

    assert child.name == "db"
    assert child.sort_index == 5
    assert child.task is None
    assert child.parent is root
    assert root.children == [child]
    assert not root.is_leaf()
    assert child.is_leaf()


def test_walk_is_pre_order_with_depth_and_parent():
    root = TaskNode.create_root()
    db = root.add_child("db")
    db.add_child("start")
    db.add_child("stop")
    root.add_child("web")

    assert collect(root) == [
        (None, None, 0),
        ("db", None, 1),
        ("start", "db", 2),
        ("stop", "db", 2),
        ("web", None, 1),
    ]


def test_walk_from_inner_node_counts_depth_from_that_node():
    root = TaskNode.create_root()
    db = root.add_child("db")
    db.add_child("start").add_child("now")

    assert collect(db) == [("db", None, 0), ("start", "db", 1), ("now", "start", 2)]


def test_walk_follows_insertion_order_not_sort_index():
    root = TaskNode.create_root()
    root.add_child("b", sort_index=1)
    root.add_child("a", sort_index=0)

    assert [name for name, _, depth in collect(root) if depth == 1] == ["b", "a"]


def test_sorted_children_orders_by_sort_index_then_insertion():
    root = TaskNode.create_root()
    root.add_child("late", sort_index=10)
    root.add_child("first", sort_index=0)
    root.add_child("second", sort_index=0)

    assert [child.name for child in root.sorted_children()] == ["first", "second", "late"]


def test_find_child_only_searches_direct_children():
    root = TaskNode.create_root()
    root.add_child("db").add_child("start")

    assert root.find_child("db") is not None
    assert root.find_child("start") is None


def test_path_lists_segments_from_root():
    root = TaskNode.create_root()
    start = root.add_child("db").add_child("start")

    assert start.path == ["db", "start"]
    assert root.path == []


def test_iteration_matches_walk_order():
    root = TaskNode.create_root()
    root.add_child("db").add_child("start")

    assert [(node.name, depth) for node, _, depth in root] == [(None, 0), ("db", 1), ("start", 2)]
