def build_comment_threads(comments):
    """
    Assemble a flat list of serialized comments into reply threads.

    Each item is a mapping with at least ``id`` and ``parent_id``. Returns the
    root comments (``parent_id`` is None) in input order; every assembled
    comment gets a ``replies`` list, in input order, and a ``reply_count``.

    A reply whose parent is not part of ``comments`` is left out of the
    result. The input is not modified.
    """
    nodes = {}
    for comment in comments:
        node = dict(comment)
        node["replies"] = []
        nodes[comment["id"]] = node

    roots = []
    for comment in comments:
        node = nodes[comment["id"]]
        parent_id = comment.get("parent_id")
        if parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(parent_id)
        if parent is not None:
            parent["replies"].append(node)

    for node in nodes.values():
        node["reply_count"] = len(node["replies"])

    return roots
