def build_reverse_prereq_map(courses: list[dict]) -> dict[str, list[str]]:
    """
    Builds a reverse hard-prerequisite map: for each course, which courses
    directly list it as a hard prerequisite.

    Returns: {"CSE 220": ["CSE 221", "CSE 250", "CSE 331"], ...}

    Only direct prerequisites (one level deep). Soft prerequisites are ignored.
    """
    reverse: dict[str, list[str]] = {}

    for course in courses:
        course_code = course["course_code"]
        for prereq_code in course.get("hard_prerequisites", []):
            reverse.setdefault(prereq_code, [])
            if course_code not in reverse[prereq_code]:
                reverse[prereq_code].append(course_code)

    return reverse


def compute_chain_depths(
    reverse_map: dict[str, list[str]],
) -> dict[str, int]:
    """
    Compute the longest downstream prerequisite chain depth for every course.

    A course with no downstream dependents has depth 0.
    CSE 110 -> CSE 111 -> CSE 220 -> CSE 221
    gives CSE 110 depth 3.

    O(V+E) with memoization; a cycle contributes depth 0 at the point it closes.
    """
    memo: dict[str, int] = {}
    in_stack: set[str] = set()

    for root in reverse_map:
        if root in memo:
            continue
        # Explicit stack of (course, children not yet visited) so long chains
        # do not hit the recursion limit.
        in_stack.add(root)
        stack = [(root, iter(reverse_map.get(root, [])))]
        best = {root: -1}
        while stack:
            course, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                in_stack.discard(course)
                memo[course] = best.pop(course) + 1
                if stack:
                    parent = stack[-1][0]
                    best[parent] = max(best[parent], memo[course])
                continue
            if child in memo:
                best[course] = max(best[course], memo[child])
            elif child in in_stack:
                best[course] = max(best[course], 0)  # cycle guard
            else:
                in_stack.add(child)
                best[child] = -1
                stack.append((child, iter(reverse_map.get(child, []))))

    return memo


def count_blocked_courses(
    course_code: str,
    reverse_map: dict[str, list[str]],
    excluded: set[str],
) -> int:
    """
    Number of courses that list course_code as a hard prerequisite and are not
    in `excluded` (already completed or already planned).
    """
    return sum(1 for c in reverse_map.get(course_code, []) if c not in excluded)


def get_direct_unlocks(
    course_code: str,
    reverse_map: dict[str, list[str]],
    limit: int = 3,
) -> list[str]:
    """
    Returns up to `limit` courses directly unlocked by completing `course_code`.
    A course is "unlocked" if it lists `course_code` as a direct hard prerequisite.
    """
    return reverse_map.get(course_code, [])[:limit]
