"""
AulaFeed - Course feed with progress gating

Streamlit application for students (class feed with video, audio, text,
image and quiz classes) and teachers (course preview, authoring, programs, groups,
people listings, grading and bulk import).

Usage:
    streamlit run app.py
"""

import logging
import time

import streamlit as st

from aulafeed import config
from aulafeed.classroom import (
    AssignmentService,
    ClassroomError,
    ClassroomStore,
    CourseService,
    EngagementService,
    FeedError,
    FeedLoader,
    ForumGate,
    ForumService,
    GroupService,
    LocalProgressCache,
    Navigator,
    ProgramService,
    ProgressTracker,
    SubmissionService,
    UserDirectory,
    ClassAvailability,
)
from aulafeed.schemas import (
    AssistantTeacher,
    ClassType,
    FeedClass,
    CourseRef,
    GroupStatus,
    NewStudent,
    ProgramStatus,
    QuizOption,
    UserProfile,
)
from aulafeed.utils import (
    import_courses,
    import_groups,
    parse_course_rows,
    parse_group_rows,
    read_sheet,
    template_frame,
)
from aulafeed.viewer import (
    QuizSession,
    TextScrollTracker,
    carousel_pct,
    carousel_start_index,
    get_feed_css,
    get_quiz_css,
    get_text_css,
    is_embed_url,
    paginate_text,
    render_class_header,
    render_comment,
    render_course_tree,
    render_embed,
    render_gate_notice,
    render_quiz_question,
    render_quiz_score,
    render_text_class,
    single_image_pct,
    STATUS_LABELS,
)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="AulaFeed",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "store" not in st.session_state:
        store = ClassroomStore(config.DB_PATH)
        st.session_state.store = store
        st.session_state.courses = CourseService(store)
        st.session_state.groups = GroupService(store)
        st.session_state.submissions = SubmissionService(store)
        st.session_state.forums = ForumService(store)
        st.session_state.users = UserDirectory(store)
        st.session_state.programs = ProgramService(store)
        st.session_state.engagement = EngagementService(store, st.session_state.users)
        st.session_state.assignments = AssignmentService(st.session_state.submissions)

    defaults = {
        "role": "Student",
        "user_id": "",
        "loaded_for": None,
        "feed": None,
        "feed_error": None,
        "tracker": None,
        "forum_gate": None,
        "navigator": None,
        "active_index": 0,
        "gate_decision": None,
        "assignment_prompt": None,
        "quiz_sessions": {},
        "text_trackers": {},
        "text_page": {},
        "carousel_index": {},
        "image_started": {},
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def reset_feed_state():
    st.session_state.feed = None
    st.session_state.feed_error = None
    st.session_state.tracker = None
    st.session_state.forum_gate = None
    st.session_state.navigator = None
    st.session_state.gate_decision = None
    st.session_state.assignment_prompt = None
    st.session_state.quiz_sessions = {}
    st.session_state.text_trackers = {}
    st.session_state.text_page = {}
    st.session_state.carousel_index = {}
    st.session_state.image_started = {}


def load_feed(user_id: str, preview_course_id: str = ""):
    """Load feed, progress and forum state for a student or a course preview."""
    key = (user_id, preview_course_id)
    if st.session_state.loaded_for == key:
        return

    if st.session_state.tracker and st.session_state.feed:
        st.session_state.tracker.flush(st.session_state.feed.items)
    reset_feed_state()
    st.session_state.loaded_for = key

    store = st.session_state.store
    loader = FeedLoader(store)
    preview = bool(preview_course_id)
    try:
        if preview:
            feed = loader.load_preview_feed(preview_course_id)
        else:
            feed = loader.load_student_feed(user_id)
    except FeedError as exc:
        st.session_state.feed_error = str(exc)
        return

    enrollment_id = feed.enrollment.id if feed.enrollment else None
    tracker = ProgressTracker(
        store, user_id, enrollment_id,
        cache=LocalProgressCache(user_id, config.CACHE_DIR),
        preview=preview,
    )
    tracker.load()
    gate = ForumGate(st.session_state.forums, user_id, preview=preview)
    if not preview:
        gate.load_all(feed.items)

    navigator = Navigator(feed, tracker, gate)
    st.session_state.feed = feed
    st.session_state.tracker = tracker
    st.session_state.forum_gate = gate
    st.session_state.navigator = navigator
    st.session_state.active_index = navigator.pending_position()


# -----------------------------------------------------------------------------
# Sidebar
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with sign-in and, for students, the course tree."""
    st.sidebar.title("🎓 AulaFeed")

    role = st.sidebar.radio("I am a", ["Student", "Teacher"], horizontal=True,
                            index=["Student", "Teacher"].index(st.session_state.role))
    user_id = st.sidebar.text_input("User id", value=st.session_state.user_id).strip()
    if role != st.session_state.role or user_id != st.session_state.user_id:
        if st.session_state.tracker and st.session_state.feed:
            st.session_state.tracker.flush(st.session_state.feed.items)
        st.session_state.role = role
        st.session_state.user_id = user_id
        st.session_state.loaded_for = None
        reset_feed_state()

    nav = st.session_state.navigator
    if not nav:
        return

    st.sidebar.divider()
    stats = nav.get_progress_summary()
    st.sidebar.markdown(
        f"**Progress:** {stats['completed_classes']}/{stats['total_classes']} classes "
        f"({stats['completion_percent']}%)"
    )
    st.sidebar.progress(stats["completion_percent"] / 100)

    active = nav.items[st.session_state.active_index]
    for course in nav.get_navigation_tree(active.id):
        st.sidebar.subheader(f"{course.title} ({course.completed_count}/{course.total_count})")
        for lesson in course.lessons:
            label = f"{lesson.title} ({lesson.completed_count}/{lesson.total_count})"
            with st.sidebar.expander(label, expanded=not lesson.collapsed):
                for entry in lesson.items:
                    indicator = nav.get_status_indicator(entry.item.id, active.id)
                    if st.button(
                        f"{indicator} {entry.item.title}",
                        key=f"jump_{entry.item.id}",
                        disabled=entry.availability == ClassAvailability.LOCKED,
                        help=f"{STATUS_LABELS[entry.availability]} · {entry.pct:.0f}%",
                        use_container_width=True,
                    ):
                        go_to(entry.index)

    st.sidebar.divider()
    if st.sidebar.button("Save progress", use_container_width=True):
        saved = st.session_state.tracker.flush(nav.items)
        st.sidebar.success(f"Saved progress of {saved} class(es).")


def go_to(index: int):
    """Jump to a class if the gate allows it."""
    nav = st.session_state.navigator
    decision = nav.jump_to(index, current=st.session_state.active_index)
    if decision.allowed:
        st.session_state.active_index = index
    st.session_state.gate_decision = None if decision.allowed else decision
    st.rerun()


def step(direction: int):
    nav = st.session_state.navigator
    new_index, decision = nav.step(st.session_state.active_index, direction)
    st.session_state.active_index = new_index
    st.session_state.gate_decision = None if decision.allowed else decision
    st.rerun()


# -----------------------------------------------------------------------------
# Feed View
# -----------------------------------------------------------------------------

def report_progress(item: FeedClass, pct: float):
    """Send a player percentage to the tracker and react to the outcome."""
    tracker = st.session_state.tracker
    gate = st.session_state.forum_gate
    update = tracker.record(item, pct, forum_ok=gate.is_satisfied(item))
    if update.just_completed:
        st.toast(f"Completed: {item.title}")
    if update.prompt_assignment:
        st.session_state.assignment_prompt = item.id


def render_feed_view(preview: bool = False):
    """Render the active class of the feed."""
    if st.session_state.feed_error:
        st.warning(st.session_state.feed_error)
        return
    nav = st.session_state.navigator
    if not nav:
        return

    index = st.session_state.active_index
    item = nav.items[index]
    tracker = st.session_state.tracker

    st.markdown(get_feed_css(), unsafe_allow_html=True)
    if preview:
        st.info("Preview mode: every class is unlocked and nothing is saved.")
    st.markdown(
        render_class_header(item, min(100.0, tracker.effective_pct(item.id)), index, len(nav.items)),
        unsafe_allow_html=True,
    )

    if item.type == ClassType.VIDEO.value:
        render_video_class(item)
    elif item.type == ClassType.AUDIO.value:
        render_audio_class(item)
    elif item.type == ClassType.TEXT.value:
        render_text_view(item, index)
    elif item.type == ClassType.IMAGE.value:
        render_image_class(item)
    elif item.type == ClassType.QUIZ.value:
        render_quiz_class(item)
    else:
        st.warning(f"Unsupported class type: {item.type}")

    render_navigation_bar()

    if st.session_state.assignment_prompt == item.id:
        st.info("This class has an assignment. Submit it below when you are ready.")
        if st.button("Got it", key=f"ack_{item.id}"):
            tracker.acknowledge_assignment(item.id)
            st.session_state.assignment_prompt = None
            st.rerun()

    if item.has_assignment:
        render_assignment_section(item, preview)
    if item.forum_enabled:
        render_forum_section(item, preview)
    render_engagement_section(item, preview)


def render_navigation_bar():
    nav = st.session_state.navigator
    index = st.session_state.active_index

    if st.session_state.gate_decision:
        st.markdown(render_gate_notice(st.session_state.gate_decision), unsafe_allow_html=True)

    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        if index > 0 and st.button("↑ Previous", use_container_width=True):
            step(-1)
    with col2:
        st.markdown(f"<center>Class {index + 1} of {len(nav.items)}</center>",
                    unsafe_allow_html=True)
    with col3:
        if index + 1 < len(nav.items) and st.button("Next ↓", use_container_width=True):
            step(1)
    st.divider()


def render_watch_slider(item: FeedClass, label: str):
    """Playback position reported by the student (player APIs are not available)."""
    current = int(min(100.0, st.session_state.tracker.effective_pct(item.id)))
    value = st.slider(label, 0, 100, value=current, step=5, key=f"watch_{item.id}")
    if value > current:
        report_progress(item, float(value))
        st.rerun()


def render_video_class(item: FeedClass):
    if not item.video_url:
        st.warning("This class has no video yet.")
        return
    if is_embed_url(item.video_url):
        st.markdown(render_embed(item.video_url, item.title), unsafe_allow_html=True)
    else:
        st.video(item.video_url)
    render_watch_slider(item, "Watched so far (%)")


def render_audio_class(item: FeedClass):
    if not item.audio_url:
        st.warning("This class has no audio yet.")
        return
    st.audio(item.audio_url)
    render_watch_slider(item, "Listened so far (%)")


def render_text_view(item: FeedClass, index: int):
    pages = paginate_text(item.content)
    page = st.session_state.text_page.get(item.id, 0)
    scroll = st.session_state.text_trackers.setdefault(item.id, TextScrollTracker())

    st.markdown(get_text_css(), unsafe_allow_html=True)
    st.markdown(render_text_class(item, page, pages), unsafe_allow_html=True)

    last_page = page >= len(pages) - 1
    button = "Finished reading" if last_page else "Continue reading"
    if st.button(button, key=f"read_{item.id}_{page}", type="primary"):
        scroll.mark_interaction()
        if not last_page:
            page += 1
            st.session_state.text_page[item.id] = page
        pct, reached_end = scroll.report(page, len(pages), 1)
        if last_page and not reached_end:
            # the click confirms the bottom position
            pct, reached_end = scroll.report(page, len(pages), 1)
        report_progress(item, pct)
        if reached_end:
            target = st.session_state.navigator.next_after_text_end(index)
            if target is not None:
                st.session_state.active_index = target
        st.rerun()


def render_image_class(item: FeedClass):
    images = item.images
    if not images:
        st.warning("This class has no images yet.")
        return

    if len(images) == 1:
        started = st.session_state.image_started.setdefault(item.id, time.time())
        st.image(images[0], use_container_width=True)
        if st.button("Done viewing", key=f"img_done_{item.id}"):
            report_progress(item, single_image_pct(time.time() - started))
            st.rerun()
        return

    if item.id not in st.session_state.carousel_index:
        st.session_state.carousel_index[item.id] = carousel_start_index(
            len(images), st.session_state.tracker.effective_pct(item.id)
        )
    idx = st.session_state.carousel_index[item.id]
    report_progress(item, carousel_pct(idx, len(images)))
    st.image(images[idx], use_container_width=True,
             caption=f"Image {idx + 1} of {len(images)}")
    col1, col2 = st.columns(2)
    with col1:
        if idx > 0 and st.button("← Previous image", key=f"img_prev_{item.id}"):
            st.session_state.carousel_index[item.id] = idx - 1
            st.rerun()
    with col2:
        if idx + 1 < len(images) and st.button("Next image →", key=f"img_next_{item.id}"):
            st.session_state.carousel_index[item.id] = idx + 1
            report_progress(item, carousel_pct(idx + 1, len(images)))
            st.rerun()


def get_quiz_session(item: FeedClass) -> QuizSession:
    sessions = st.session_state.quiz_sessions
    if item.id not in sessions:
        questions = st.session_state.courses.get_quiz_questions(item.class_doc_id)
        existing = None
        if item.group_id:
            existing = st.session_state.submissions.find_submission(
                item.group_id, item.id, st.session_state.user_id
            )
        if existing:
            sessions[item.id] = QuizSession.restore(item, questions, existing)
        else:
            sessions[item.id] = QuizSession(item, questions)
    return sessions[item.id]


def render_quiz_class(item: FeedClass):
    session = get_quiz_session(item)
    if not session.questions:
        st.warning("This quiz has no questions yet.")
        return

    st.markdown(get_quiz_css(), unsafe_allow_html=True)
    for idx, question in enumerate(session.questions):
        st.markdown(render_quiz_question(question, idx, session.feedback.get(question.id)),
                    unsafe_allow_html=True)
        answered = question.id in session.answers
        if question.type == "open":
            text = st.text_area("Your answer", key=f"open_{question.id}",
                                value=session.answers.get(question.id, ""),
                                disabled=answered or session.submitted)
            if not answered and st.button("Save answer", key=f"save_{question.id}"):
                session.answer_open(question.id, text)
                report_progress(item, session.pct)
                st.rerun()
            continue

        labels = {opt.id: opt.text for opt in question.options}
        choice = st.radio(
            "Choose one", list(labels), format_func=labels.get,
            key=f"choice_{question.id}",
            index=list(labels).index(session.answers[question.id]) if answered else None,
            disabled=answered or session.submitted,
        )
        if not answered and choice and st.button("Answer", key=f"answer_{question.id}"):
            session.answer(question.id, choice)
            report_progress(item, session.pct)
            st.rerun()

    if session.submitted:
        st.markdown(render_quiz_score(session), unsafe_allow_html=True)
    elif session.all_answered and st.button("Submit quiz", type="primary"):
        try:
            session.submit(st.session_state.tracker, st.session_state.submissions,
                           st.session_state.user_id, display_name())
        except ClassroomError as exc:
            st.error(str(exc))
            return
        report_progress(item, session.pct)
        st.rerun()


def display_name() -> str:
    user_id = st.session_state.user_id
    return st.session_state.users.get_display_name(user_id) or user_id


def render_assignment_section(item: FeedClass, preview: bool):
    st.subheader("Assignment")
    if item.assignment_template_url:
        st.markdown(f"[Download the template]({item.assignment_template_url})")
    if preview:
        st.caption("Students submit their work here.")
        return

    service = st.session_state.assignments
    existing = service.status_for(item, st.session_state.user_id)
    if existing:
        st.success(f"Submitted ({existing.status.value}).")
        if existing.grade is not None:
            st.markdown(f"**Grade:** {existing.grade:g}  \n{existing.feedback}")
        return

    with st.form(f"assignment_{item.id}"):
        upload = st.file_uploader("Attach your work")
        note = st.text_area("Or write a note")
        if st.form_submit_button("Submit assignment"):
            try:
                url = ""
                if upload is not None:
                    url = service.store_attachment(st.session_state.user_id, item.id,
                                                   upload.name, upload.getvalue())
                service.submit(item, st.session_state.user_id, display_name(), note, url)
            except ClassroomError as exc:
                st.error(str(exc))
                return
            st.session_state.tracker.acknowledge_assignment(item.id)
            st.rerun()


def render_forum_section(item: FeedClass, preview: bool):
    forums = st.session_state.forums
    gate = st.session_state.forum_gate
    user_id = st.session_state.user_id

    st.subheader("Forum")
    if item.forum_required_format:
        st.caption(f"Participation required ({item.forum_required_format}).")

    if not preview:
        own = forums.get_student_forum_post(item.class_doc_id, user_id)
        with st.form(f"forum_{item.id}"):
            formats = ["text", "audio", "video"]
            default = item.forum_required_format or (own.format if own else "text")
            fmt = st.selectbox("Format", formats, index=formats.index(default))
            text = st.text_area("Your post", value=own.text if own else "")
            media_url = st.text_input("Media URL (audio/video)",
                                      value=(own.media_url or "") if own else "")
            if st.form_submit_button("Publish"):
                try:
                    forums.create_or_update_forum_post(
                        item.class_doc_id, user_id, text, display_name(), fmt, media_url
                    )
                except ClassroomError as exc:
                    st.error(str(exc))
                    return
                if gate.refresh(item):
                    report_progress(item, st.session_state.tracker.effective_pct(item.id))
                st.rerun()

    for post in forums.get_forum_posts(item.class_doc_id):
        with st.expander(f"{post.author_name} · {post.replies_count} replies"):
            st.markdown(post.text)
            if post.media_url:
                st.markdown(f"[{post.format} attachment]({post.media_url})")
            for reply in forums.get_forum_replies(item.class_doc_id, post.id):
                st.markdown(f"**{reply.author_name}:** {reply.text}")
            if not preview:
                reply_text = st.text_input("Reply", key=f"reply_{item.id}_{post.id}")
                if st.button("Send", key=f"send_{item.id}_{post.id}") and reply_text.strip():
                    forums.add_forum_reply(item.class_doc_id, post.id, reply_text,
                                           user_id, display_name())
                    st.rerun()


def render_engagement_section(item: FeedClass, preview: bool):
    engagement = st.session_state.engagement
    user_id = st.session_state.user_id

    col1, col2 = st.columns([1, 5])
    with col1:
        liked = engagement.has_liked(item.class_doc_id, user_id)
        label = f"{'♥' if liked else '♡'} {item.likes_count}"
        if not preview and st.button(label, key=f"like_{item.id}"):
            _, count = engagement.toggle_like(item.class_doc_id, user_id)
            item.likes_count = count
            st.rerun()

    st.subheader("Comments")
    if not preview:
        with st.form(f"comment_{item.id}", clear_on_submit=True):
            text = st.text_input("Add a comment")
            if st.form_submit_button("Post") and text.strip():
                engagement.add_comment(item.class_doc_id, text, user_id, display_name())
                st.rerun()

    comments = engagement.get_comments(item.class_doc_id, user_id, display_name())
    for root, replies in engagement.comment_tree(comments):
        st.markdown(render_comment(root), unsafe_allow_html=True)
        for reply in replies:
            st.markdown(render_comment(reply, reply=True), unsafe_allow_html=True)


# -----------------------------------------------------------------------------
# Teacher Views
# -----------------------------------------------------------------------------

def render_teacher_view():
    teacher_id = st.session_state.user_id
    courses = st.session_state.courses
    st.title("Teacher dashboard")

    tabs = st.tabs(["Preview", "Courses", "Programs", "Groups", "Submissions", "Forums",
                    "People", "Bulk import"])
    with tabs[0]:
        own = courses.get_courses(teacher_id)
        if not own:
            st.info("Create a course first.")
        else:
            labels = {c.id: c.title for c in own}
            course_id = st.selectbox("Course", list(labels), format_func=labels.get)
            load_feed(teacher_id, course_id)
            render_feed_view(preview=True)
            nav = st.session_state.navigator
            if nav:
                with st.expander("Course outline"):
                    active = nav.items[st.session_state.active_index]
                    st.markdown(render_course_tree(nav.get_navigation_tree(active.id)),
                                unsafe_allow_html=True)
    with tabs[1]:
        render_courses_tab(teacher_id)
    with tabs[2]:
        render_programs_tab()
    with tabs[3]:
        render_groups_tab(teacher_id)
    with tabs[4]:
        render_submissions_tab(teacher_id)
    with tabs[5]:
        render_forums_tab(teacher_id)
    with tabs[6]:
        render_people_tab()
    with tabs[7]:
        render_import_tab(teacher_id)


def render_courses_tab(teacher_id: str):
    courses = st.session_state.courses
    programs = st.session_state.programs
    program_names = [""] + [p.name for p in programs.get_programs()]

    with st.form("new_course", clear_on_submit=True):
        st.markdown("**New course**")
        title = st.text_input("Title")
        description = st.text_area("Description")
        category = st.text_input("Category")
        program = st.selectbox("Program", program_names,
                               format_func=lambda name: name or "(none)")
        if st.form_submit_button("Create course") and title.strip():
            course_id = courses.create_course(teacher_id, title.strip(), description,
                                              teacher_name=display_name(), category=category,
                                              program=program)
            if program:
                programs.sync_course_program(course_id, program)
            st.rerun()

    for course in courses.get_courses(teacher_id):
        status = "archived" if course.is_archived else (
            "published" if course.is_published else "draft")
        with st.expander(f"{course.title} · {status} · {course.lessons_count} lessons"):
            col1, col2 = st.columns(2)
            with col1:
                if st.button("Unpublish" if course.is_published else "Publish",
                             key=f"pub_{course.id}"):
                    courses.publish_course(course.id, not course.is_published)
                    st.rerun()
            with col2:
                if st.button("Unarchive" if course.is_archived else "Archive",
                             key=f"arch_{course.id}"):
                    courses.archive_course(course.id, not course.is_archived)
                    st.rerun()
            options = program_names if course.program in program_names \
                else program_names + [course.program]
            chosen = st.selectbox("Program", options, index=options.index(course.program),
                                  format_func=lambda name: name or "(none)",
                                  key=f"program_{course.id}")
            if chosen != course.program:
                courses.update_course(course.id, program=chosen)
                programs.sync_course_program(course.id, chosen)
                st.rerun()
            render_lessons_editor(course.id)


def render_programs_tab():
    programs = st.session_state.programs
    courses = st.session_state.courses

    with st.form("new_program", clear_on_submit=True):
        st.markdown("**New program**")
        name = st.text_input("Name")
        description = st.text_area("Description")
        cover_url = st.text_input("Cover image URL")
        if st.form_submit_button("Create program") and name.strip():
            programs.create_program(name, description, cover_url)
            st.rerun()

    if st.button("Sync programs from courses"):
        changed = programs.sync_programs_from_courses()
        st.success(f"{changed} programs updated")

    for program in programs.get_programs():
        with st.expander(f"{program.name} · {program.status.value} · "
                         f"{len(program.course_ids)} courses"):
            if program.description:
                st.caption(program.description)
            for course_id in program.course_ids:
                course = courses.get_course(course_id)
                st.markdown(f"- {course.title if course else course_id}")
            col1, col2 = st.columns(2)
            with col1:
                archived = program.status == ProgramStatus.ARCHIVED
                if st.button("Reactivate" if archived else "Archive",
                             key=f"prog_arch_{program.id}"):
                    programs.update_program(program.id, status=ProgramStatus.ACTIVE
                                            if archived else ProgramStatus.ARCHIVED)
                    st.rerun()
            with col2:
                if st.button("Delete", key=f"prog_del_{program.id}"):
                    programs.delete_program(program.id)
                    st.rerun()


def render_people_tab():
    users = st.session_state.users

    st.subheader("Teachers")
    teachers = users.get_teacher_users()
    if not teachers:
        st.info("No teachers yet.")
    for teacher in teachers:
        col1, col2 = st.columns([4, 1])
        with col1:
            st.markdown(f"**{teacher.name}** · {teacher.role} · {teacher.email or '-'} · "
                        f"{teacher.phone or '-'} · {teacher.status}")
        with col2:
            if teacher.status != "deleted" and teacher.id != st.session_state.user_id:
                if st.button("Deactivate", key=f"deact_{teacher.id}"):
                    users.deactivate_teacher(teacher.id)
                    st.rerun()

    st.subheader("Students")
    students = users.get_student_users()
    if students:
        st.dataframe(
            [{"Name": s.name, "Email": s.email, "Status": s.status} for s in students],
            use_container_width=True,
        )
    else:
        st.info("No students yet.")


def render_lessons_editor(course_id: str):
    courses = st.session_state.courses

    new_lesson = st.text_input("New lesson title", key=f"new_lesson_{course_id}")
    if st.button("Add lesson", key=f"add_lesson_{course_id}") and new_lesson.strip():
        courses.create_lesson(course_id, new_lesson.strip())
        st.rerun()

    for lesson in courses.get_lessons(course_id):
        st.markdown(f"**{lesson.lesson_number}. {lesson.title}**")
        for item in courses.get_classes(lesson.id):
            col1, col2 = st.columns([6, 1])
            with col1:
                st.markdown(f"- {item.title} ({item.type or 'video'})")
            with col2:
                if st.button("Delete", key=f"del_class_{item.id}"):
                    courses.delete_class(item.id)
                    st.rerun()
            if item.type == ClassType.QUIZ.value:
                render_quiz_editor(item.id)

        with st.form(f"new_class_{lesson.id}", clear_on_submit=True):
            title = st.text_input("Class title")
            class_type = st.selectbox("Type", [t.value for t in ClassType])
            content = st.text_area("URL, text, or image URLs (one per line)")
            has_assignment = st.checkbox("Has assignment")
            forum_enabled = st.checkbox("Forum participation required")
            if st.form_submit_button("Add class") and title.strip():
                fields = {"has_assignment": has_assignment, "forum_enabled": forum_enabled}
                if class_type == ClassType.VIDEO.value:
                    fields["video_url"] = content.strip()
                elif class_type == ClassType.AUDIO.value:
                    fields["audio_url"] = content.strip()
                elif class_type == ClassType.IMAGE.value:
                    fields["image_urls"] = [u.strip() for u in content.splitlines() if u.strip()]
                else:
                    fields["content"] = content
                courses.create_class(course_id, lesson.id, title.strip(), type=class_type,
                                     **fields)
                st.rerun()
        if st.button("Delete lesson", key=f"del_lesson_{lesson.id}"):
            courses.delete_lesson(course_id, lesson.id)
            st.rerun()


def render_quiz_editor(class_id: str):
    courses = st.session_state.courses
    for question in courses.get_quiz_questions(class_id):
        st.caption(f"Q: {question.prompt} ({len(question.options)} options)")

    with st.form(f"new_question_{class_id}", clear_on_submit=True):
        prompt = st.text_input("Question")
        options_text = st.text_area("Options, one per line; prefix the correct one with *")
        if st.form_submit_button("Add question") and prompt.strip():
            options = []
            for idx, line in enumerate(l.strip() for l in options_text.splitlines()):
                if not line:
                    continue
                correct = line.startswith("*")
                options.append(QuizOption(id=f"o{idx}", text=line.lstrip("*").strip(),
                                          is_correct=correct))
            courses.create_quiz_question(class_id, prompt.strip(), options)
            st.rerun()


def render_groups_tab(teacher_id: str):
    groups = st.session_state.groups
    courses = st.session_state.courses
    own_courses = courses.get_courses(teacher_id)
    labels = {c.id: c.title for c in own_courses}

    if own_courses:
        with st.form("new_group", clear_on_submit=True):
            st.markdown("**New group**")
            name = st.text_input("Group name")
            program = st.text_input("Program")
            semester = st.text_input("Semester")
            selected = st.multiselect("Courses", list(labels), format_func=labels.get)
            if st.form_submit_button("Create group") and name.strip() and selected:
                refs = [CourseRef(course_id=cid, course_name=labels[cid]) for cid in selected]
                groups.create_group(refs[0].course_id, refs[0].course_name, name.strip(),
                                    teacher_id, display_name(), semester=semester,
                                    program=program, courses=refs)
                st.rerun()

    for group in groups.get_groups(teacher_id):
        with st.expander(f"{group.group_name} · {group.status.value} · "
                         f"{group.students_count} students"):
            st.caption("Courses: " + ", ".join(ref.course_name for ref in group.courses))

            linkable = [cid for cid in labels if cid not in group.course_ids]
            if linkable:
                link = st.selectbox("Link course", linkable, format_func=labels.get,
                                    key=f"link_{group.id}")
                if st.button("Link", key=f"do_link_{group.id}"):
                    groups.link_course_to_group(group.id, link, labels[link])
                    st.rerun()

            students_text = st.text_area("Add students (id, name, email per line)",
                                         key=f"students_{group.id}")
            if st.button("Add students", key=f"add_students_{group.id}"):
                new = []
                for line in students_text.splitlines():
                    parts = [p.strip() for p in line.split(",")]
                    if parts and parts[0]:
                        new.append(NewStudent(id=parts[0],
                                              name=parts[1] if len(parts) > 1 else "",
                                              email=parts[2] if len(parts) > 2 else ""))
                added = groups.add_students_to_group(group.id, new)
                st.success(f"Added {added} student(s).")

            assistants_text = st.text_input(
                "Assistant teachers (id:name, comma separated)",
                value=", ".join(f"{a.id}:{a.name}" for a in group.assistant_teachers),
                key=f"assist_{group.id}",
            )
            if st.button("Save assistants", key=f"save_assist_{group.id}"):
                assistants = []
                for chunk in assistants_text.split(","):
                    if ":" in chunk:
                        aid, aname = chunk.split(":", 1)
                        assistants.append(AssistantTeacher(id=aid.strip(), name=aname.strip()))
                groups.set_assistant_teachers(group.id, assistants)
                st.rerun()

            for student in groups.get_group_students(group.id):
                col1, col2 = st.columns([5, 1])
                with col1:
                    st.markdown(f"- {student.student_name or student.id} {student.student_email}")
                with col2:
                    if st.button("Remove", key=f"rm_{group.id}_{student.id}"):
                        groups.remove_student_from_group(group.id, student.id)
                        st.rerun()

            statuses = [s.value for s in GroupStatus]
            new_status = st.selectbox("Status", statuses, index=statuses.index(group.status.value),
                                      key=f"status_{group.id}")
            if new_status != group.status.value:
                groups.set_group_status(group.id, GroupStatus(new_status))
                st.rerun()


def render_submissions_tab(teacher_id: str):
    groups = st.session_state.groups
    submissions = st.session_state.submissions
    own = groups.get_groups(teacher_id)
    if not own:
        st.info("No groups yet.")
        return

    labels = {g.id: g.group_name for g in own}
    group_id = st.selectbox("Group", list(labels), format_func=labels.get, key="grade_group")
    for submission in submissions.get_all_submissions(group_id):
        header = (f"{submission.student_name} · {submission.class_name} · "
                  f"{submission.status.value}")
        with st.expander(header):
            st.text(submission.content)
            if submission.attachment_url:
                st.caption(submission.attachment_url)
            with st.form(f"grade_{submission.id}"):
                grade = st.number_input("Grade", 0.0, 100.0,
                                        value=float(submission.grade or 0.0))
                feedback = st.text_area("Feedback", value=submission.feedback)
                if st.form_submit_button("Save grade"):
                    submissions.grade_submission(group_id, submission.id, grade, feedback)
                    st.rerun()


def render_forums_tab(teacher_id: str):
    courses = st.session_state.courses
    forums = st.session_state.forums

    forum_classes = []
    for course in courses.get_courses(teacher_id):
        for lesson in courses.get_lessons(course.id):
            forum_classes.extend(c for c in courses.get_classes(lesson.id) if c.forum_enabled)
    if not forum_classes:
        st.info("No classes with a forum yet.")
        return

    labels = {c.id: c.title for c in forum_classes}
    class_id = st.selectbox("Class", list(labels), format_func=labels.get, key="forum_class")
    for post in forums.get_forum_posts(class_id):
        status = f"graded {post.grade:g}" if post.grade is not None else "pending"
        with st.expander(f"{post.author_name} · {status}"):
            st.markdown(post.text)
            if post.media_url:
                st.markdown(f"[{post.format} attachment]({post.media_url})")
            with st.form(f"grade_forum_{class_id}_{post.id}"):
                grade = st.number_input("Grade", 0.0, 100.0, value=float(post.grade or 0.0))
                feedback = st.text_area("Feedback", value=post.feedback)
                if st.form_submit_button("Save grade"):
                    forums.grade_forum_post(class_id, post.author_id, grade, feedback)
                    st.rerun()
            reply = st.text_input("Reply as teacher", key=f"t_reply_{class_id}_{post.id}")
            if st.button("Send", key=f"t_send_{class_id}_{post.id}") and reply.strip():
                forums.add_forum_reply(class_id, post.id, reply, teacher_id,
                                       display_name(), role="professor")
                st.rerun()


def render_import_tab(teacher_id: str):
    kind = st.radio("Import", ["courses", "groups"], horizontal=True)
    st.download_button(
        "Download template",
        template_frame(kind).to_csv(index=False).encode("utf-8"),
        file_name=f"{kind}_template.csv",
        mime="text/csv",
    )
    upload = st.file_uploader("Spreadsheet (.xlsx, .xls, .csv)", type=["xlsx", "xls", "csv"])
    if upload is None:
        return

    try:
        frame = read_sheet(upload, upload.name)
    except ValueError as exc:
        st.error(str(exc))
        return
    st.dataframe(frame, use_container_width=True)

    if st.button("Import", type="primary"):
        if kind == "courses":
            results = import_courses(parse_course_rows(frame), st.session_state.courses,
                                     teacher_id, display_name())
        else:
            results = import_groups(parse_group_rows(frame), st.session_state.groups,
                                    st.session_state.courses, teacher_id, display_name())
        ok = sum(1 for r in results if r.ok)
        st.success(f"Imported {ok} of {len(results)} rows.")
        for result in results:
            if not result.ok:
                st.warning(f"Row {result.row}: {result.message}")


# -----------------------------------------------------------------------------
# Account
# -----------------------------------------------------------------------------

def render_password_notice(user_id: str) -> bool:
    """Ask a student to change the initial password. Returns True while pending."""
    users = st.session_state.users
    if users.get_user(user_id) is None:
        users.upsert_user(UserProfile(id=user_id, name=user_id, role="student"))
    if not users.must_change_password(user_id):
        return False
    st.warning("Please change your initial password before continuing.")
    if st.button("I have changed my password"):
        users.clear_must_change_password(user_id)
        st.rerun()
    return True


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()

    user_id = st.session_state.user_id
    if not user_id:
        st.info("Enter your user id in the sidebar to begin.")
        return

    if st.session_state.role == "Teacher":
        render_teacher_view()
        return

    if render_password_notice(user_id):
        return
    load_feed(user_id)
    render_feed_view()


if __name__ == "__main__":
    main()
