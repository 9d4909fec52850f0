"""
GraphQL documents used by the client
"""

TASK_FIELDS = """
    id
    title
    description
    status
    priority
    dueDate
    createdAt
    updatedAt
    categoryIds
"""

CATEGORY_FIELDS = """
    id
    name
    color
    createdAt
"""

GET_USER = """
query GetUser {
  user {
    id
    email
  }
}
"""

GET_TASKS = f"""
query GetTasks {{
  tasks {{{TASK_FIELDS}  }}
}}
"""

GET_TASK = f"""
query GetTask($id: ID!) {{
  task(id: $id) {{{TASK_FIELDS}  }}
}}
"""

GET_CATEGORIES = f"""
query GetCategories {{
  categories {{{CATEGORY_FIELDS}  }}
}}
"""

GET_TASK_STATS = """
query GetTaskStats {
  taskStats {
    total
    completed
    pending
    inProgress
    completedToday
    overdue
    todayTasks
  }
}
"""

CREATE_TASK = f"""
mutation CreateTask($input: CreateTaskInput!) {{
  createTask(input: $input) {{{TASK_FIELDS}  }}
}}
"""

UPDATE_TASK = f"""
mutation UpdateTask($id: ID!, $input: UpdateTaskInput!) {{
  updateTask(id: $id, input: $input) {{{TASK_FIELDS}  }}
}}
"""

DELETE_TASK = """
mutation DeleteTask($id: ID!) {
  deleteTask(id: $id)
}
"""

ADD_TASK_TO_CATEGORY = f"""
mutation AddTaskToCategory($taskId: ID!, $categoryId: ID!) {{
  addTaskToCategory(taskId: $taskId, categoryId: $categoryId) {{{TASK_FIELDS}  }}
}}
"""

REMOVE_TASK_FROM_CATEGORY = f"""
mutation RemoveTaskFromCategory($taskId: ID!, $categoryId: ID!) {{
  removeTaskFromCategory(taskId: $taskId, categoryId: $categoryId) {{{TASK_FIELDS}  }}
}}
"""

CREATE_CATEGORY = f"""
mutation CreateCategory($input: CreateCategoryInput!) {{
  createCategory(input: $input) {{{CATEGORY_FIELDS}  }}
}}
"""

UPDATE_CATEGORY = f"""
mutation UpdateCategory($id: ID!, $input: UpdateCategoryInput!) {{
  updateCategory(id: $id, input: $input) {{{CATEGORY_FIELDS}  }}
}}
"""

DELETE_CATEGORY = """
mutation DeleteCategory($id: ID!) {
  deleteCategory(id: $id)
}
"""
