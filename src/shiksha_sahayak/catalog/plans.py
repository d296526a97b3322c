"""Daily lesson-plan rotation and the profile editor's option lists."""

from datetime import date

from shiksha_sahayak.models.catalog import LessonPlan
from shiksha_sahayak.models.profile import UserProfile

DEFAULT_TABLE = "default"

GRADE_OPTIONS = ["Grade 1", "Grade 2", "Grade 3", "Grade 4", "Grade 5"]
SUBJECT_OPTIONS = ["Math", "Science", "English", "Hindi", "Social Studies"]
LANGUAGE_OPTIONS = ["English", "Hindi", "Tamil", "Telugu"]
SCHOOL_OPTIONS = [
    "Govt Primary School, Rampur",
    "Govt Upper Primary School, Sitapur",
    "Kendriya Vidyalaya",
    "Jawahar Navodaya Vidyalaya",
    "Zilla Parishad School",
]

MOTIVATIONAL_QUOTES = [
    "Teaching is the one profession that creates all other professions.",
    "You are making a difference every single day.",
    "Small steps lead to big changes in the classroom.",
]

SUBJECT_PLANS: dict[str, list[LessonPlan]] = {
    "Math": [
        LessonPlan(
            title="Fractions with Chapati Circles",
            prep="Cut 10 paper circles. Keep chalk and a duster ready.",
            steps=(
                "Show one whole circle and call it 'one chapati'.",
                "Fold a circle into two equal parts and write 1/2 on the board.",
                "Let groups fold circles into quarters and name each part.",
                "Ask: which is bigger, 1/2 or 1/4? Groups compare by overlapping.",
            ),
            duration="30 min",
            group_size="Groups of 4",
        ),
        LessonPlan(
            title="Stone Counting Market",
            prep="Collect 50 small stones and draw price tags on paper slips.",
            steps=(
                "Set up two 'shops' with price tags from 1 to 20.",
                "Students buy items by paying with stones.",
                "The shopkeeper checks the total and gives change.",
                "Write three transactions on the board as addition sentences.",
            ),
            duration="35 min",
            group_size="Pairs",
        ),
        LessonPlan(
            title="Shape Hunt in the Schoolyard",
            prep="Draw a circle, square, triangle and rectangle on the board.",
            steps=(
                "Take the class outside for ten minutes.",
                "Each child finds two objects matching a shape on the board.",
                "Back in class, children draw what they found.",
                "Count how many of each shape the class found.",
            ),
            duration="40 min",
            group_size="Whole class",
        ),
    ],
    "Science": [
        LessonPlan(
            title="Leaf Detectives",
            prep="Ask students to bring three different leaves from home.",
            steps=(
                "Students sort leaves by shape, size and edge.",
                "Trace each leaf in the notebook.",
                "Discuss why leaves are green and what they need.",
                "Make a class chart of leaf groups on the board.",
            ),
            duration="30 min",
            group_size="Groups of 4",
        ),
        LessonPlan(
            title="Float or Sink",
            prep="Fill a bucket with water. Gather a stone, leaf, chalk, bottle cap and pencil.",
            steps=(
                "Children predict whether each object will float or sink.",
                "Test each object one by one.",
                "Record results in two columns on the board.",
                "Ask why the bottle cap floats but the stone sinks.",
            ),
            duration="25 min",
            group_size="Whole class",
        ),
        LessonPlan(
            title="Shadow Clock",
            prep="Find a sunny spot and a straight stick.",
            steps=(
                "Fix the stick upright in the ground in the morning.",
                "Mark the tip of the shadow with a stone.",
                "Repeat the marking after lunch.",
                "Discuss how the shadow moved and why.",
            ),
            duration="20 min",
            group_size="Groups of 6",
        ),
    ],
    "English": [
        LessonPlan(
            title="Action Word Relay",
            prep="Write ten action words on paper slips.",
            steps=(
                "A child picks a slip and acts out the word.",
                "The team guesses and writes the word on the board.",
                "Make one sentence with each word together.",
                "Children copy three sentences in their notebooks.",
            ),
            duration="30 min",
            group_size="Two teams",
        ),
        LessonPlan(
            title="Picture Story Chain",
            prep="Draw a simple scene (a village well) on the board.",
            steps=(
                "Start a story with one sentence about the picture.",
                "Each child adds one sentence in turn.",
                "Write the best sentences on the board.",
                "Read the whole story aloud together.",
            ),
            duration="25 min",
            group_size="Whole class",
        ),
    ],
    "Hindi": [
        LessonPlan(
            title="Varnamala Stone Game",
            prep="Write letters of the varnamala on stones with chalk.",
            steps=(
                "Spread the stones on the floor.",
                "Call out a word; children pick the stones for its letters.",
                "Arrange the stones in order to form the word.",
                "Write the word on the board and read aloud.",
            ),
            duration="30 min",
            group_size="Groups of 5",
        ),
        LessonPlan(
            title="Kavita Recitation Circle",
            prep="Choose a short poem from the textbook.",
            steps=(
                "Recite the poem with actions.",
                "Children repeat line by line.",
                "Groups perform one stanza each.",
                "Discuss difficult words and their meanings.",
            ),
            duration="25 min",
            group_size="Groups of 4",
        ),
    ],
    "Social Studies": [
        LessonPlan(
            title="Map of Our Village",
            prep="Draw a large outline of the village on the floor with chalk.",
            steps=(
                "Mark the school as the starting point.",
                "Children add the well, temple, market and fields.",
                "Introduce north, south, east and west.",
                "Each child describes the way from home to school.",
            ),
            duration="40 min",
            group_size="Whole class",
        ),
        LessonPlan(
            title="Community Helpers Role-play",
            prep="Prepare name cards: farmer, doctor, postman, teacher, shopkeeper.",
            steps=(
                "Give each group one helper card.",
                "Groups prepare a short role-play of a day in that job.",
                "Each group performs for two minutes.",
                "Discuss how each helper supports the village.",
            ),
            duration="35 min",
            group_size="Groups of 5",
        ),
    ],
    DEFAULT_TABLE: [
        LessonPlan(
            title="Morning Circle Check-in",
            prep="Clear space for a circle. No materials needed.",
            steps=(
                "Children sit in a circle.",
                "Each child shares one thing they did yesterday.",
                "Teacher asks one follow-up question to three children.",
                "End with a short clapping rhythm game.",
            ),
            duration="15 min",
            group_size="Whole class",
        ),
        LessonPlan(
            title="Blackboard Quiz Race",
            prep="Write five review questions on the board.",
            steps=(
                "Split the class into two teams.",
                "One child from each team answers in turn.",
                "Award a chalk star for each correct answer.",
                "Review any question both teams missed.",
            ),
            duration="20 min",
            group_size="Two teams",
        ),
        LessonPlan(
            title="Nature Walk Journal",
            prep="Plan a safe route around the school compound.",
            steps=(
                "Walk slowly and observe for ten minutes.",
                "Children note three things they saw and heard.",
                "Back in class, each child draws one observation.",
                "Share drawings in pairs.",
            ),
            duration="35 min",
            group_size="Pairs",
        ),
    ],
}


def day_of_year(today: date) -> int:
    """Whole days elapsed since January 1 of the same year (Jan 1 is 0)."""
    return (today - date(today.year, 1, 1)).days


def plan_table(profile: UserProfile) -> list[LessonPlan]:
    subject = profile.subject.strip()
    if subject and subject in SUBJECT_PLANS:
        return SUBJECT_PLANS[subject]
    return SUBJECT_PLANS[DEFAULT_TABLE]


def select_plan(profile: UserProfile, offset: int = 0, today: date | None = None) -> LessonPlan:
    """Pick today's plan for the profile's subject.

    The same (date, subject, offset) always yields the same plan, and offsets
    cycle with the table length.
    """
    today = today or date.today()
    table = plan_table(profile)
    return table[(day_of_year(today) + offset) % len(table)]
